from __future__ import annotations

import json
import time
from queue import Empty

from flask import Blueprint, Response, jsonify, request, stream_with_context

from ...schemas import load_or_fail
from ...schemas.inquiry import InquiryCreateSchema, InquirySchema, StaffInquirySchema
from ...schemas.item import LostItemSchema
from ...security import is_staff, require_user
from ...services import inquiry_workflow
from ..notifications.bus import subscribe, unsubscribe

bp = Blueprint("inquiries", __name__, url_prefix="/inquiries")


def _dump(inquiry) -> dict:
    return InquirySchema().dump(inquiry)


@bp.post("")
def submit_inquiry():
    """Submit a lost-item report.

    Accepts application/json or multipart/form-data; multipart may carry up
    to five photos in the ``images`` file field.
    """
    uid = require_user()
    content_type = request.content_type or ""
    if content_type.startswith("multipart/form-data"):
        raw = request.form
        files = request.files.getlist("images")
    else:
        raw = request.get_json(silent=True) or {}
        files = []
    data = load_or_fail(InquiryCreateSchema(), raw, "Please provide a title and description")
    inquiry = inquiry_workflow().submit(uid, data, files)
    return jsonify({"inquiry": _dump(inquiry)}), 201


@bp.get("")
def list_my_inquiries():
    uid = require_user()
    rows = inquiry_workflow().list_for_user(uid)
    return jsonify({"inquiries": [_dump(i) for i in rows]})


@bp.get("/<int:inquiry_id>")
def get_inquiry(inquiry_id: int):
    uid = require_user()
    wf = inquiry_workflow()
    if is_staff():
        return jsonify({"inquiry": StaffInquirySchema().dump(wf.get(inquiry_id))})
    return jsonify({"inquiry": _dump(wf.get_owned(inquiry_id, uid))})


@bp.get("/<int:inquiry_id>/match")
def get_matched_item(inquiry_id: int):
    uid = require_user()
    item = inquiry_workflow().matched_item(inquiry_id, uid)
    return jsonify({"item": LostItemSchema().dump(item)})


@bp.post("/<int:inquiry_id>/confirm")
def confirm_match(inquiry_id: int):
    uid = require_user()
    inquiry = inquiry_workflow().confirm_ownership(inquiry_id, uid)
    return jsonify({"inquiry": _dump(inquiry), "message": "Item confirmed and recovered!"})


@bp.post("/<int:inquiry_id>/reject")
def reject_match(inquiry_id: int):
    uid = require_user()
    inquiry = inquiry_workflow().reject_ownership(inquiry_id, uid)
    return jsonify({"inquiry": _dump(inquiry), "message": "Match rejected"})


@bp.get("/stream")
def stream_updates():
    """Server-Sent Events stream of the caller's inquiry updates.

    Events only hint that something changed; clients re-fetch the inquiry.
    """
    uid = require_user()
    q = subscribe(uid)

    def event_stream():
        try:
            # Initial comment to establish stream
            yield ": connected\n\n"
            while True:
                try:
                    # Keep below gunicorn's timeout to ensure periodic yields
                    evt = q.get(timeout=15)
                except Empty:
                    # Keep-alive
                    yield "event: ping\n" + f"data: {json.dumps({'ts': int(time.time())})}\n\n"
                    continue
                yield "event: inquiry\n" + f"data: {json.dumps(evt, default=str)}\n\n"
        finally:
            unsubscribe(uid, q)

    headers = {
        "Content-Type": "text/event-stream",
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        "X-Accel-Buffering": "no",
    }
    return Response(stream_with_context(event_stream()), headers=headers)
