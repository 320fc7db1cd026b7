"""AI-assisted matching of one inquiry against the unclaimed inventory.

A run has three phases:

1. read the inquiry and the unclaimed items;
2. ask the completion backend (no database transaction held meanwhile);
3. in one transaction, with the inquiry row locked, upsert the candidates
   and write the inquiry's summary fields.

Backend timeouts and unparseable replies count as zero candidates. Any
other backend failure aborts the run before phase 3, so the summary is
never half-written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import MatchingFailed, NotFound, TriageError
from ...extensions import db
from ...integrations.completions.client import CompletionClient, CompletionError, CompletionTimeout
from ...models import Inquiry, LostItem
from ...transactions import atomic
from ..inquiries.states import MATCHABLE
from ..inventory.ledger import InventoryLedger
from ..matches.store import Candidate, MatchStore
from .parsing import parse_candidates
from .prompts import build_messages

logger = logging.getLogger(__name__)


@dataclass
class MatchingResult:
    inquiry_id: int
    candidates: list[Candidate] = field(default_factory=list)
    # Why the run wrote nothing or asked nothing: "empty_inventory", "timeout", "inactive"
    skipped: str | None = None

    @property
    def match_count(self) -> int:
        return len(self.candidates)

    def to_dict(self) -> dict:
        return {"matchCount": self.match_count, "matches": [c.to_dict() for c in self.candidates]}


class MatchingService:
    def __init__(
        self,
        completions: CompletionClient,
        *,
        session: Session | None = None,
        store: MatchStore | None = None,
        ledger: InventoryLedger | None = None,
        publish: Callable[[Inquiry], None] | None = None,
        min_confidence: float = 40.0,
    ):
        self.completions = completions
        self.session = session or db.session
        self.store = store or MatchStore(self.session)
        self.ledger = ledger or InventoryLedger(self.session, self.store)
        self.publish = publish
        self.min_confidence = min_confidence

    def run(self, inquiry_id: int) -> MatchingResult:
        inquiry = self.session.get(Inquiry, inquiry_id)
        if inquiry is None:
            raise NotFound("Inquiry not found")
        if inquiry.status not in MATCHABLE:
            logger.info("Inquiry %s is %s; not matching", inquiry_id, inquiry.status.value)
            return MatchingResult(inquiry_id, skipped="inactive")

        items = self.ledger.unclaimed_items()
        if not items:
            logger.info("Inquiry %s: inventory empty, skipping completion call", inquiry_id)
            candidates: list[Candidate] = []
            skipped = "empty_inventory"
        else:
            messages = build_messages(inquiry, items, self.min_confidence)
            known_ids = {item.id for item in items}
            # Don't hold a transaction open across the slow call
            self.session.rollback()
            try:
                reply = self.completions.complete(messages)
            except CompletionTimeout:
                logger.warning("Inquiry %s: completion timed out; treating as zero candidates", inquiry_id)
                candidates, skipped = [], "timeout"
            except CompletionError as e:
                logger.error("Inquiry %s: completion failed: %s", inquiry_id, e)
                raise MatchingFailed("AI matching failed") from e
            else:
                candidates = parse_candidates(reply, known_ids, self.min_confidence)
                skipped = None

        return self._store_results(inquiry_id, candidates, skipped)

    def _store_results(self, inquiry_id: int, candidates: list[Candidate], skipped: str | None) -> MatchingResult:
        try:
            with atomic(self.session):
                inquiry = (
                    self.session.query(Inquiry)
                    .filter(Inquiry.id == inquiry_id)
                    .with_for_update()
                    .populate_existing()
                    .one_or_none()
                )
                if inquiry is None:
                    raise NotFound("Inquiry not found")
                if inquiry.status not in MATCHABLE:
                    # Staff decided while the backend was thinking
                    logger.info("Inquiry %s became %s during matching; discarding results", inquiry_id, inquiry.status.value)
                    return MatchingResult(inquiry_id, skipped="inactive")
                if candidates:
                    # Items may have left inventory during the call
                    live = {
                        row.id
                        for row in self.session.query(LostItem.id).filter(
                            LostItem.id.in_([c.item_id for c in candidates])
                        )
                    }
                    candidates = [c for c in candidates if c.item_id in live]
                self.store.upsert_candidates(inquiry.id, candidates)
                if candidates:
                    inquiry.confidence_score = max(c.confidence for c in candidates)
                    inquiry.number_of_matches = len(candidates)
                else:
                    # Explicit reset so a previous run's summary can't linger
                    inquiry.confidence_score = None
                    inquiry.number_of_matches = 0
        except TriageError:
            raise
        except SQLAlchemyError as e:
            logger.exception("Inquiry %s: storing matches failed", inquiry_id)
            raise MatchingFailed("Failed to store matches") from e

        logger.info(
            "Inquiry %s: %d candidate(s), best=%s",
            inquiry_id,
            len(candidates),
            inquiry.confidence_score,
        )
        if self.publish is not None:
            self.publish(inquiry)
        return MatchingResult(inquiry_id, candidates, skipped)
