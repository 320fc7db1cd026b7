from sqlalchemy import UniqueConstraint, func, Index
from ..extensions import db
from .enums import id_type


class ConfirmedMatch(db.Model):
    """A staff-approved pairing waiting for the owner's confirm/reject."""

    __tablename__ = "matches"

    id = db.Column(id_type, primary_key=True)
    inquiry_id = db.Column(id_type, db.ForeignKey("inquiries.id", ondelete="CASCADE"), nullable=False)
    lost_item_id = db.Column(id_type, db.ForeignKey("lost_items.id", ondelete="CASCADE"), nullable=False)
    user_id = db.Column(db.String(64), nullable=False)
    match_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    inquiry = db.relationship("Inquiry")
    lost_item = db.relationship("LostItem")

    __table_args__ = (
        # One live confirmed match per inquiry; a racing second approval fails here
        UniqueConstraint("inquiry_id", name="uq_matches_inquiry"),
        Index("idx_matches_item", "lost_item_id"),
    )
