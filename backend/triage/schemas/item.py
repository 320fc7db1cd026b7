from marshmallow import Schema, fields, validate

from ..models import ItemCategory
from .common import FormSchema


class LostItemCreateSchema(FormSchema):
    keep_blank = ("name",)

    name = fields.Str(required=True, error_messages={"required": "Name is required"}, validate=validate.Length(min=1, max=200, error="Name is required (max 200 characters)"))
    description = fields.Str(load_default=None, allow_none=True)
    category = fields.Enum(ItemCategory, by_value=True, load_default=ItemCategory.OTHER)
    color = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=80))
    brand = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=120))
    distinguishing_features = fields.Str(data_key="distinguishingFeatures", load_default=None, allow_none=True)
    location_found = fields.Str(data_key="locationFound", load_default=None, allow_none=True, validate=validate.Length(max=200))
    date_found = fields.Date(data_key="dateFound", load_default=None, allow_none=True)


class LostItemSchema(Schema):
    id = fields.Int()
    name = fields.Str()
    description = fields.Str(allow_none=True)
    category = fields.Enum(ItemCategory, by_value=True)
    color = fields.Str(allow_none=True)
    brand = fields.Str(allow_none=True)
    distinguishing_features = fields.Str(data_key="distinguishingFeatures", allow_none=True)
    location_found = fields.Str(data_key="locationFound", allow_none=True)
    date_found = fields.Date(data_key="dateFound", allow_none=True)
    image_urls = fields.List(fields.Str(), data_key="imageUrls")
    is_claimed = fields.Bool(data_key="isClaimed")
    added_by = fields.Str(data_key="addedBy", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
