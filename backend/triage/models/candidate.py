from sqlalchemy import UniqueConstraint, func, Index
from ..extensions import db
from .enums import id_type, json_type


class CandidateMatch(db.Model):
    __tablename__ = "potential_matches"

    id = db.Column(id_type, primary_key=True)
    inquiry_id = db.Column(id_type, db.ForeignKey("inquiries.id", ondelete="CASCADE"), nullable=False)
    lost_item_id = db.Column(id_type, db.ForeignKey("lost_items.id", ondelete="CASCADE"), nullable=False)
    confidence_score = db.Column(db.Float, nullable=False, default=0.0)
    # {"reasons": [str, ...], "details": str?}
    match_reasons = db.Column(json_type)
    # Review audit columns; the transition paths delete candidates instead of writing these
    is_approved = db.Column(db.Boolean)
    reviewed_by = db.Column(db.String(64))
    reviewed_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    inquiry = db.relationship("Inquiry")
    lost_item = db.relationship("LostItem")

    __table_args__ = (
        UniqueConstraint("inquiry_id", "lost_item_id", name="uq_potential_matches_inquiry_item"),
        Index("idx_potential_matches_inquiry", "inquiry_id"),
        Index("idx_potential_matches_item", "lost_item_id"),
    )
