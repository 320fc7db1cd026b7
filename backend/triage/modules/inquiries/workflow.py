"""Transitions of an inquiry through its lifecycle.

Each transition is one database transaction: the dependent rows
(candidates, confirmed match, inventory item) change first and the status
is written last, as a compare-and-swap on the status the transition expects.
A concurrent actor who got there first makes the swap match zero rows, and
the whole transaction rolls back with ``TransitionConflict``.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from sqlalchemy.orm import Session
from werkzeug.utils import secure_filename

from ...errors import Forbidden, NoLongerAvailable, NotFound, TransitionConflict
from ...extensions import db
from ...models import CandidateMatch, ConfirmedMatch, Inquiry, InquiryStatus, LostItem
from ...transactions import atomic
from ..inventory.ledger import InventoryLedger
from ..matches.store import MatchStore
from ..storage.objects import ObjectStorage, upload_images
from .states import can_transition

logger = logging.getLogger(__name__)

S = InquiryStatus


class InquiryWorkflow:
    def __init__(
        self,
        *,
        session: Session | None = None,
        store: MatchStore | None = None,
        ledger: InventoryLedger | None = None,
        storage: ObjectStorage | None = None,
        dispatch: Callable[[int], bool] | None = None,
        publish: Callable[[Inquiry], None] | None = None,
        max_images: int = 5,
    ):
        self.session = session or db.session
        self.store = store or MatchStore(self.session)
        self.ledger = ledger or InventoryLedger(self.session, self.store)
        self.storage = storage
        self.dispatch = dispatch
        self.publish = publish
        self.max_images = max_images

    # Reads

    def get(self, inquiry_id: int) -> Inquiry:
        inquiry = self.session.get(Inquiry, inquiry_id)
        if inquiry is None:
            raise NotFound("Inquiry not found")
        return inquiry

    def get_owned(self, inquiry_id: int, user_id: str) -> Inquiry:
        inquiry = self.get(inquiry_id)
        self._check_owner(inquiry, user_id)
        return inquiry

    def list_for_user(self, user_id: str) -> list[Inquiry]:
        return (
            self.session.query(Inquiry)
            .filter(Inquiry.user_id == user_id)
            .order_by(Inquiry.created_at.desc(), Inquiry.id.desc())
            .all()
        )

    def matched_item(self, inquiry_id: int, user_id: str) -> LostItem:
        inquiry = self.get_owned(inquiry_id, user_id)
        item = self.store.get_confirmed_match_item(inquiry.id)
        if item is None:
            raise NoLongerAvailable("The matched item is no longer available")
        return item

    # Transitions

    def submit(self, user_id: str, data: dict, images: Iterable = ()) -> Inquiry:
        """Create the inquiry, start matching, and move it to under_review.

        The under_review write follows the dispatch immediately; it does not
        wait for matching to finish. Once the row exists the submission
        succeeds whatever happens to matching.
        """
        image_urls: list[str] = []
        if self.storage is not None:
            folder = secure_filename(str(user_id)) or "anonymous"
            image_urls = upload_images(self.storage, images, f"inquiries/{folder}", self.max_images)
        with atomic(self.session):
            inquiry = Inquiry(user_id=user_id, status=S.SUBMITTED, image_urls=image_urls, **data)
            self.session.add(inquiry)
        inquiry_id = inquiry.id
        logger.info("inquiry %s: created by %s with %d image(s)", inquiry_id, user_id, len(image_urls))

        if self.dispatch is not None and not self.dispatch(inquiry_id):
            logger.warning("inquiry %s: matching not started; staff can re-run it", inquiry_id)

        try:
            with atomic(self.session):
                self._swap_status(inquiry_id, {S.SUBMITTED}, S.UNDER_REVIEW)
        except TransitionConflict:
            # Staff already closed it; the submission itself still stands
            logger.info("inquiry %s: left submitted before under_review could be set", inquiry_id)
        inquiry = self.get(inquiry_id)
        self._published(inquiry)
        return inquiry

    def approve_candidate(self, inquiry_id: int, candidate_id: int, reviewer_id: str | None = None) -> ConfirmedMatch:
        with atomic(self.session):
            inquiry = self._lock(inquiry_id)
            self._expect(inquiry, {S.UNDER_REVIEW}, S.MATCHED)
            candidate = self.session.get(CandidateMatch, candidate_id)
            if candidate is None or candidate.inquiry_id != inquiry.id:
                raise NotFound("Candidate not found for this inquiry")
            if self.session.get(LostItem, candidate.lost_item_id) is None:
                raise NoLongerAvailable("The candidate item is no longer in inventory")
            # One pending owner answer per item
            if self.store.is_item_reserved(candidate.lost_item_id):
                raise TransitionConflict("Item is already reserved for another inquiry")
            match =self.store.create_confirmed_match(inquiry.id, candidate.lost_item_id, inquiry.user_id)
            cleared = self.store.clear_candidates(inquiry.id)
            self._swap_status(inquiry.id, {S.UNDER_REVIEW}, S.MATCHED)
        logger.info(
            "inquiry %s: under_review -> matched (item %s, reviewer %s, %d candidate(s) cleared)",
            inquiry_id, match.lost_item_id, reviewer_id, cleared,
        )
        self._published(self.get(inquiry_id))
        return match

    def mark_no_match(self, inquiry_id: int, reviewer_id: str | None = None) -> Inquiry:
        with atomic(self.session):
            inquiry = self._lock(inquiry_id)
            if inquiry.status is S.REJECTED:
                cleared = self.store.clear_candidates(inquiry.id)
                changed = False
            else:
                self._expect(inquiry, {S.SUBMITTED, S.UNDER_REVIEW}, S.REJECTED)
                previous = inquiry.status
                cleared = self.store.clear_candidates(inquiry.id)
                self._swap_status(inquiry.id, {S.SUBMITTED, S.UNDER_REVIEW}, S.REJECTED)
                changed = True
        if changed:
            logger.info(
                "inquiry %s: %s -> rejected (reviewer %s, %d candidate(s) cleared)",
                inquiry_id, previous.value, reviewer_id, cleared,
            )
            self._published(self.get(inquiry_id))
        return self.get(inquiry_id)

    def confirm_ownership(self, inquiry_id: int, user_id: str) -> Inquiry:
        with atomic(self.session):
            inquiry = self._lock(inquiry_id)
            self._check_owner(inquiry, user_id)
            self._expect(inquiry, {S.MATCHED}, S.RESOLVED)
            match = self.store.get_confirmed_match(inquiry.id)
            if match is None:
                raise NoLongerAvailable("The matched item is no longer available")
            item_id = match.lost_item_id
            self.store.delete_confirmed_match(inquiry.id)
            if not self.ledger.remove_resolved(item_id):
                logger.warning("inquiry %s: item %s was already gone at confirmation", inquiry_id, item_id)
                raise NoLongerAvailable("The matched item is no longer available")
            self._swap_status(inquiry.id, {S.MATCHED}, S.RESOLVED)
        logger.info("inquiry %s: matched -> resolved (item %s removed from inventory)", inquiry_id, item_id)
        inquiry = self.get(inquiry_id)
        self._published(inquiry)
        return inquiry

    def reject_ownership(self, inquiry_id: int, user_id: str) -> Inquiry:
        with atomic(self.session):
            inquiry = self._lock(inquiry_id)
            self._check_owner(inquiry, user_id)
            if inquiry.status is S.REJECTED:
                self.store.delete_confirmed_match(inquiry.id)
                changed = False
            else:
                self._expect(inquiry, {S.MATCHED}, S.REJECTED)
                # The item stays in inventory, unclaimed, and is matchable again
                self.store.delete_confirmed_match(inquiry.id)
                self._swap_status(inquiry.id, {S.MATCHED}, S.REJECTED)
                changed = True
        if changed:
            logger.info("inquiry %s: matched -> rejected by owner", inquiry_id)
            self._published(self.get(inquiry_id))
        return self.get(inquiry_id)

    # Helpers

    def _lock(self, inquiry_id: int) -> Inquiry:
        inquiry = (
            self.session.query(Inquiry)
            .filter(Inquiry.id == inquiry_id)
            .with_for_update()
            .populate_existing()
            .one_or_none()
        )
        if inquiry is None:
            raise NotFound("Inquiry not found")
        return inquiry

    @staticmethod
    def _check_owner(inquiry: Inquiry, user_id: str) -> None:
        if str(inquiry.user_id) != str(user_id):
            raise Forbidden("Not authorized to act on this inquiry")

    @staticmethod
    def _expect(inquiry: Inquiry, expected: set[InquiryStatus], target: InquiryStatus) -> None:
        if inquiry.status not in expected:
            raise TransitionConflict(
                f"Inquiry is {inquiry.status.value}; cannot move to {target.value}"
            )

    def _swap_status(self, inquiry_id: int, expected: set[InquiryStatus], target: InquiryStatus) -> None:
        for status in expected:
            if not can_transition(status, target):
                raise ValueError(f"{status.value} -> {target.value} is not a lifecycle edge")
        updated = (
            self.session.query(Inquiry)
            .filter(Inquiry.id == inquiry_id, Inquiry.status.in_(list(expected)))
            .update({Inquiry.status: target}, synchronize_session=False)
        )
        if updated == 0:
            raise TransitionConflict(f"Inquiry changed concurrently; cannot move to {target.value}")

    def _published(self, inquiry: Inquiry) -> None:
        if self.publish is not None:
            self.publish(inquiry)
