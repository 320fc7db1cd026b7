"""Candidate (potential_matches) and confirmed (matches) match rows.

Nothing here commits: callers group these calls into one transaction with
``triage.transactions.atomic``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ...errors import TransitionConflict
from ...extensions import db
from ...models import CandidateMatch, ConfirmedMatch, LostItem

logger = logging.getLogger(__name__)


@dataclass
class Candidate:
    """One proposed (inquiry, item) pairing as produced by a matching run."""

    item_id: int
    confidence: float
    reasons: list[str] = field(default_factory=list)
    details: str | None = None

    def reasons_payload(self) -> dict:
        payload: dict = {"reasons": list(self.reasons)}
        if self.details:
            payload["details"] = self.details
        return payload

    def to_dict(self) -> dict:
        return {"itemId": self.item_id, "confidence": self.confidence, "reasons": list(self.reasons)}


class MatchStore:
    def __init__(self, session: Session | None = None):
        self.session = session or db.session

    # Candidates

    def upsert_candidates(self, inquiry_id: int, candidates: list[Candidate]) -> list[CandidateMatch]:
        """Insert or overwrite one row per (inquiry, item)."""
        existing = {
            row.lost_item_id: row
            for row in self.session.query(CandidateMatch).filter(CandidateMatch.inquiry_id == inquiry_id)
        }
        rows: list[CandidateMatch] = []
        for cand in candidates:
            row = existing.get(cand.item_id)
            if row is None:
                row = CandidateMatch(inquiry_id=inquiry_id, lost_item_id=cand.item_id)
                self.session.add(row)
                existing[cand.item_id] = row
            row.confidence_score = float(cand.confidence)
            row.match_reasons = cand.reasons_payload()
            rows.append(row)
        self.session.flush()
        return rows

    def list_candidates(self, inquiry_id: int) -> list[CandidateMatch]:
        # id ascending keeps first-insertion order among equal scores
        return (
            self.session.query(CandidateMatch)
            .options(joinedload(CandidateMatch.lost_item))
            .filter(CandidateMatch.inquiry_id == inquiry_id)
            .order_by(CandidateMatch.confidence_score.desc(), CandidateMatch.id.asc())
            .all()
        )

    def clear_candidates(self, inquiry_id: int) -> int:
        return (
            self.session.query(CandidateMatch)
            .filter(CandidateMatch.inquiry_id == inquiry_id)
            .delete(synchronize_session=False)
        )

    def clear_candidates_for_item(self, item_id: int) -> int:
        return (
            self.session.query(CandidateMatch)
            .filter(CandidateMatch.lost_item_id == item_id)
            .delete(synchronize_session=False)
        )

    def candidate_summaries(self) -> dict[int, dict]:
        """Per inquiry with candidates: {"count": n, "maxConfidence": x}."""
        rows = (
            self.session.query(
                CandidateMatch.inquiry_id,
                func.count(CandidateMatch.id),
                func.max(CandidateMatch.confidence_score),
            )
            .group_by(CandidateMatch.inquiry_id)
            .all()
        )
        return {
            int(inquiry_id): {"count": int(count or 0), "maxConfidence": float(best or 0)}
            for inquiry_id, count, best in rows
        }

    # Confirmed matches

    def get_confirmed_match(self, inquiry_id: int) -> ConfirmedMatch | None:
        return self.session.query(ConfirmedMatch).filter(ConfirmedMatch.inquiry_id == inquiry_id).first()

    def create_confirmed_match(self, inquiry_id: int, item_id: int, user_id: str) -> ConfirmedMatch:
        """Create the confirmed match, or return the one a previous attempt left.

        A row for a different item means another reviewer approved first.
        """
        existing = self.get_confirmed_match(inquiry_id)
        if existing is not None:
            if existing.lost_item_id == item_id:
                return existing
            raise TransitionConflict("Inquiry already has a confirmed match for another item")
        row = ConfirmedMatch(inquiry_id=inquiry_id, lost_item_id=item_id, user_id=user_id)
        self.session.add(row)
        self.session.flush()
        return row

    def delete_confirmed_match(self, inquiry_id: int) -> int:
        return (
            self.session.query(ConfirmedMatch)
            .filter(ConfirmedMatch.inquiry_id == inquiry_id)
            .delete(synchronize_session=False)
        )

    def is_item_reserved(self, item_id: int) -> bool:
        return (
            self.session.query(ConfirmedMatch.id).filter(ConfirmedMatch.lost_item_id == item_id).first()
            is not None
        )

    def get_confirmed_match_item(self, inquiry_id: int) -> LostItem | None:
        """Resolve the inquiry's confirmed match to its item.

        Any missing link, or a failed lookup, reads as "no longer available".
        """
        try:
            match = self.get_confirmed_match(inquiry_id)
            if match is None:
                return None
            return self.session.get(LostItem, match.lost_item_id)
        except SQLAlchemyError:
            logger.exception("Lookup of matched item for inquiry %s failed", inquiry_id)
            self.session.rollback()
            return None
