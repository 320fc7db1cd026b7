from marshmallow import Schema, fields, validate

from ..models import InquiryStatus, ItemCategory
from ..modules.inquiries.states import staff_actions, status_label, user_actions
from .common import FormSchema


class InquiryCreateSchema(FormSchema):
    keep_blank = ("title", "description")

    title = fields.Str(required=True, error_messages={"required": "Title is required"}, validate=validate.Length(min=1, max=200, error="Title is required (max 200 characters)"))
    description = fields.Str(required=True, error_messages={"required": "Description is required"}, validate=validate.Length(min=1, error="Description is required"))
    category = fields.Enum(ItemCategory, by_value=True, load_default=None, allow_none=True)
    color = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=80))
    brand = fields.Str(load_default=None, allow_none=True, validate=validate.Length(max=120))
    distinguishing_features = fields.Str(data_key="distinguishingFeatures", load_default=None, allow_none=True)
    location_lost = fields.Str(data_key="locationLost", load_default=None, allow_none=True, validate=validate.Length(max=200))
    date_lost = fields.Date(data_key="dateLost", load_default=None, allow_none=True)


class InquirySchema(Schema):
    id = fields.Int()
    user_id = fields.Str(data_key="userId")
    title = fields.Str()
    description = fields.Str()
    category = fields.Enum(ItemCategory, by_value=True, allow_none=True)
    color = fields.Str(allow_none=True)
    brand = fields.Str(allow_none=True)
    distinguishing_features = fields.Str(data_key="distinguishingFeatures", allow_none=True)
    location_lost = fields.Str(data_key="locationLost", allow_none=True)
    date_lost = fields.Date(data_key="dateLost", allow_none=True)
    image_urls = fields.List(fields.Str(), data_key="imageUrls")
    status = fields.Enum(InquiryStatus, by_value=True)
    status_label = fields.Method("get_status_label", data_key="statusLabel")
    actions = fields.Method("get_actions")
    confidence_score = fields.Float(data_key="confidenceScore", allow_none=True)
    number_of_matches = fields.Int(data_key="numberOfMatches")
    assigned_assistant_id = fields.Str(data_key="assignedAssistantId", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
    updated_at = fields.DateTime(data_key="updatedAt")

    def get_status_label(self, obj) -> str:
        return status_label(obj.status)

    def get_actions(self, obj) -> list[str]:
        return user_actions(obj.status)


class StaffInquirySchema(InquirySchema):
    def get_actions(self, obj) -> list[str]:
        return staff_actions(obj.status)
