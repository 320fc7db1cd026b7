import enum

from sqlalchemy import BigInteger, Enum, Integer, JSON
from sqlalchemy.dialects.postgresql import JSONB

# BIGSERIAL ids on Postgres; SQLite only autoincrements INTEGER PRIMARY KEY.
id_type = BigInteger().with_variant(Integer(), "sqlite")
json_type = JSON().with_variant(JSONB(), "postgresql")


class InquiryStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    MATCHED = "matched"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class ItemCategory(str, enum.Enum):
    ELECTRONICS = "electronics"
    CLOTHING = "clothing"
    ACCESSORIES = "accessories"
    DOCUMENTS = "documents"
    KEYS = "keys"
    BAGS = "bags"
    OTHER = "other"


# Stored by value so the column holds "under_review", not "UNDER_REVIEW".
inquiry_status_enum = Enum(
    InquiryStatus,
    name="inquiry_status_enum",
    values_callable=lambda e: [m.value for m in e],
    validate_strings=True,
)
item_category_enum = Enum(
    ItemCategory,
    name="item_category_enum",
    values_callable=lambda e: [m.value for m in e],
    validate_strings=True,
)
