"""Integration tests for the found-items inventory."""

import pytest

from triage.errors import NotFound, TransitionConflict
from triage.models import CandidateMatch, LostItem


class TestInventoryLedger:
    def test_new_items_are_unclaimed(self, ledger, make_item):
        a, b = make_item("A"), make_item("B")
        assert a.is_claimed is False
        assert [i.id for i in ledger.unclaimed_items()] == [a.id, b.id]
        assert ledger.count() == 2

    def test_delete_clears_candidates(self, ledger, db, make_item, make_inquiry, add_candidates):
        item = make_item()
        add_candidates(make_inquiry(), (item, 70))
        ledger.delete_item(item.id)
        db.session.commit()
        assert db.session.get(LostItem, item.id) is None
        assert db.session.query(CandidateMatch).count() == 0

    def test_delete_refused_while_reserved(self, ledger, store, db, make_item, make_inquiry):
        item = make_item()
        inquiry = make_inquiry()
        store.create_confirmed_match(inquiry.id, item.id, inquiry.user_id)
        db.session.commit()
        with pytest.raises(TransitionConflict):
            ledger.delete_item(item.id)
        db.session.rollback()
        assert db.session.get(LostItem, item.id) is not None

    def test_delete_unknown(self, ledger):
        with pytest.raises(NotFound):
            ledger.delete_item(12345)

    def test_remove_resolved_reports_missing(self, ledger, db, make_item):
        item = make_item()
        assert ledger.remove_resolved(item.id) is True
        db.session.commit()
        assert ledger.remove_resolved(item.id) is False
