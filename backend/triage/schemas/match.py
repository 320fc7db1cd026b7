from marshmallow import Schema, fields

from .item import LostItemSchema


class CandidateSchema(Schema):
    id = fields.Int()
    inquiry_id = fields.Int(data_key="inquiryId")
    lost_item_id = fields.Int(data_key="lostItemId")
    confidence_score = fields.Float(data_key="confidenceScore")
    match_reasons = fields.Dict(data_key="matchReasons", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt")
    lost_item = fields.Nested(LostItemSchema, data_key="lostItem", allow_none=True)


class ConfirmedMatchSchema(Schema):
    id = fields.Int()
    inquiry_id = fields.Int(data_key="inquiryId")
    lost_item_id = fields.Int(data_key="lostItemId")
    user_id = fields.Str(data_key="userId")
    match_date = fields.DateTime(data_key="matchDate")


class ApproveCandidateSchema(Schema):
    candidate_id = fields.Int(data_key="candidateId", required=True)


class MatchInquirySchema(Schema):
    inquiry_id = fields.Int(data_key="inquiryId", required=True)
