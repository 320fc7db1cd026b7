from sqlalchemy import func, Index
from ..extensions import db
from .enums import id_type, json_type, inquiry_status_enum, item_category_enum, InquiryStatus


class Inquiry(db.Model):
    __tablename__ = "inquiries"

    id = db.Column(id_type, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(item_category_enum)
    color = db.Column(db.String(80))
    brand = db.Column(db.String(120))
    distinguishing_features = db.Column(db.Text)
    location_lost = db.Column(db.String(200))
    date_lost = db.Column(db.Date)
    image_urls = db.Column(json_type, nullable=False, default=list)
    status = db.Column(inquiry_status_enum, nullable=False, default=InquiryStatus.SUBMITTED)
    # Summary of the last matching run; may lag potential_matches
    confidence_score = db.Column(db.Float)
    number_of_matches = db.Column(db.Integer, nullable=False, default=0)
    assigned_assistant_id = db.Column(db.String(64))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_inquiries_user", "user_id"),
        Index("idx_inquiries_status", "status"),
        Index("idx_inquiries_created_at", "created_at"),
    )
