from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ...errors import NotFound, TransitionConflict
from ...extensions import db
from ...models import LostItem
from ..matches.store import MatchStore

logger = logging.getLogger(__name__)


class InventoryLedger:
    """Owns the found-items inventory and which items are still matchable.

    ``is_claimed`` is written once, false, when an item is added. Confirming
    a match deletes the item (``remove_resolved``); rejecting a match leaves
    it untouched, so it is matchable again.
    """

    def __init__(self, session: Session | None = None, matches: MatchStore | None = None):
        self.session = session or db.session
        self.matches = matches or MatchStore(self.session)

    def unclaimed_items(self) -> list[LostItem]:
        return (
            self.session.query(LostItem)
            .filter(LostItem.is_claimed.is_(False))
            .order_by(LostItem.id.asc())
            .all()
        )

    def list_items(self) -> list[LostItem]:
        return self.session.query(LostItem).order_by(LostItem.created_at.desc(), LostItem.id.desc()).all()

    def count(self) -> int:
        return self.session.query(LostItem).count()

    def get_item(self, item_id: int) -> LostItem:
        item = self.session.get(LostItem, item_id)
        if item is None:
            raise NotFound("Item not found")
        return item

    def add_item(self, data: dict, *, image_urls: list[str] | None = None, added_by: str | None = None) -> LostItem:
        item = LostItem(**data, image_urls=list(image_urls or []), added_by=added_by, is_claimed=False)
        self.session.add(item)
        self.session.flush()
        return item

    def delete_item(self, item_id: int) -> None:
        """Manual staff removal.

        Refused while a confirmed match waits on the owner; only the owner's
        confirmation may take a reserved item out of inventory.
        """
        item = self.get_item(item_id)
        if self.matches.is_item_reserved(item.id):
            raise TransitionConflict("Item is part of a confirmed match awaiting the owner's answer")
        cleared = self.matches.clear_candidates_for_item(item.id)
        self._delete_row(item.id)
        logger.info("Deleted inventory item %s (%d candidate rows cleared)", item_id, cleared)

    def remove_resolved(self, item_id: int) -> bool:
        """Delete an item handed back to its owner; False if it was already gone."""
        self.matches.clear_candidates_for_item(item_id)
        return self._delete_row(item_id) > 0

    def _delete_row(self, item_id: int) -> int:
        return self.session.query(LostItem).filter(LostItem.id == item_id).delete(synchronize_session="fetch")
