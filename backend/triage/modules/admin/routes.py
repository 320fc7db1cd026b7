from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import func

from ...extensions import db
from ...models import Inquiry, InquiryStatus
from ...schemas import load_or_fail
from ...schemas.inquiry import StaffInquirySchema
from ...schemas.item import LostItemCreateSchema, LostItemSchema
from ...schemas.match import ApproveCandidateSchema, CandidateSchema, ConfirmedMatchSchema
from ...security import current_user_id, require_staff
from ...services import collaborators, inquiry_workflow, inventory_ledger, match_store
from ...transactions import atomic
from ..storage.objects import upload_images

bp = Blueprint("admin", __name__, url_prefix="/admin")


@bp.before_request
def _require_staff():
    require_staff()


@bp.get("/inquiries")
def review_queue():
    """Inquiries that currently have candidates, newest first.

    Each row carries ``matchSummary``: candidate count and best confidence
    computed from the candidate rows themselves, not the inquiry's cached
    summary fields.
    """
    summaries = match_store().candidate_summaries()
    if not summaries:
        return jsonify({"inquiries": []})
    rows = (
        Inquiry.query
        .filter(Inquiry.id.in_(list(summaries)))
        .order_by(Inquiry.created_at.desc(), Inquiry.id.desc())
        .all()
    )
    schema = StaffInquirySchema()
    out = []
    for inquiry in rows:
        payload = schema.dump(inquiry)
        payload["matchSummary"] = summaries.get(int(inquiry.id))
        out.append(payload)
    return jsonify({"inquiries": out})


@bp.get("/inquiries/<int:inquiry_id>/candidates")
def list_candidates(inquiry_id: int):
    inquiry = inquiry_workflow().get(inquiry_id)
    candidates = match_store().list_candidates(inquiry.id)
    return jsonify({
        "inquiry": StaffInquirySchema().dump(inquiry),
        "candidates": CandidateSchema(many=True).dump(candidates),
    })


@bp.post("/inquiries/<int:inquiry_id>/approve")
def approve_candidate(inquiry_id: int):
    data = load_or_fail(ApproveCandidateSchema(), request.get_json(silent=True) or {}, "candidateId is required")
    wf = inquiry_workflow()
    match = wf.approve_candidate(inquiry_id, data["candidate_id"], reviewer_id=current_user_id())
    return jsonify({
        "match": ConfirmedMatchSchema().dump(match),
        "inquiry": StaffInquirySchema().dump(wf.get(inquiry_id)),
        "message": "Match approved",
    })


@bp.post("/inquiries/<int:inquiry_id>/no-match")
def mark_no_match(inquiry_id: int):
    inquiry = inquiry_workflow().mark_no_match(inquiry_id, reviewer_id=current_user_id())
    return jsonify({"inquiry": StaffInquirySchema().dump(inquiry), "message": "Marked as no match"})


@bp.get("/overview")
def overview():
    counts = {
        status: int(n or 0)
        for status, n in db.session.query(Inquiry.status, func.count(Inquiry.id)).group_by(Inquiry.status).all()
    }
    return jsonify({
        "totalInquiries": sum(counts.values()),
        "pendingReview": counts.get(InquiryStatus.SUBMITTED, 0) + counts.get(InquiryStatus.UNDER_REVIEW, 0),
        "matched": counts.get(InquiryStatus.MATCHED, 0),
        "resolved": counts.get(InquiryStatus.RESOLVED, 0),
        "rejected": counts.get(InquiryStatus.REJECTED, 0),
        "totalInventory": inventory_ledger().count(),
    })


@bp.get("/inventory")
def list_inventory():
    items = inventory_ledger().list_items()
    return jsonify({"items": LostItemSchema(many=True).dump(items)})


@bp.post("/inventory")
def add_inventory_item():
    """Catalogue a found item.

    Accepts application/json or multipart/form-data with up to five photos
    in the ``images`` file field.
    """
    uid = current_user_id()
    content_type = request.content_type or ""
    if content_type.startswith("multipart/form-data"):
        raw = request.form
        files = request.files.getlist("images")
    else:
        raw = request.get_json(silent=True) or {}
        files = []
    data = load_or_fail(LostItemCreateSchema(), raw)
    limit = int(current_app.config.get("MAX_IMAGES_PER_RECORD", 5))
    image_urls = upload_images(collaborators().storage, files, "inventory", limit)
    ledger = inventory_ledger()
    with atomic(db.session):
        item = ledger.add_item(data, image_urls=image_urls, added_by=uid)
    return jsonify({"item": LostItemSchema().dump(item), "message": "Item added to inventory"}), 201


@bp.delete("/inventory/<int:item_id>")
def delete_inventory_item(item_id: int):
    with atomic(db.session):
        inventory_ledger().delete_item(item_id)
    return jsonify({"ok": True, "message": "Item deleted"})
