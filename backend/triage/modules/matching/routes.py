from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request
from flask_cors import cross_origin

from ...errors import Forbidden, TriageError
from ...schemas import load_or_fail
from ...schemas.match import MatchInquirySchema
from ...security import is_staff, require_user
from ...services import inquiry_workflow, matching_service

logger = logging.getLogger(__name__)

bp = Blueprint("matching", __name__)

# Browser clients call this from other origins with their own auth headers
_CORS_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


@bp.post("/match-inquiry")
@cross_origin(origins="*", send_wildcard=True, allow_headers=_CORS_HEADERS, methods=["POST", "OPTIONS"])
def match_inquiry():
    """Run matching for one inquiry synchronously and return what was stored.

    Errors are rendered here rather than by the app-wide handler so the
    response still carries the CORS headers.
    """
    try:
        uid = require_user()
        data = load_or_fail(MatchInquirySchema(), request.get_json(silent=True) or {}, "inquiryId is required")
        inquiry = inquiry_workflow().get(data["inquiry_id"])
        if not is_staff() and str(inquiry.user_id) != str(uid):
            raise Forbidden("Not authorized to match this inquiry")
        result = matching_service().run(inquiry.id)
    except TriageError as e:
        if e.status_code >= 500:
            logger.error("match-inquiry failed: %s", e.message)
        return jsonify({"error": e.message}), e.status_code
    return jsonify(result.to_dict())
