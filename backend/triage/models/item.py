from sqlalchemy import false, func, Index
from ..extensions import db
from .enums import id_type, json_type, item_category_enum, ItemCategory


class LostItem(db.Model):
    """A found object catalogued by staff in the private inventory."""

    __tablename__ = "lost_items"

    id = db.Column(id_type, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(item_category_enum, nullable=False, default=ItemCategory.OTHER)
    color = db.Column(db.String(80))
    brand = db.Column(db.String(120))
    distinguishing_features = db.Column(db.Text)
    location_found = db.Column(db.String(200))
    date_found = db.Column(db.Date)
    image_urls = db.Column(json_type, nullable=False, default=list)
    # Never flipped to true: a confirmed item is deleted outright
    is_claimed = db.Column(db.Boolean, nullable=False, default=False, server_default=false())
    added_by = db.Column(db.String(64))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_lost_items_claimed", "is_claimed"),
        Index("idx_lost_items_category", "category"),
    )
