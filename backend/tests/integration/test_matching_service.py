"""Integration tests for a matching run against the in-memory database."""

import json

import pytest

from triage.errors import MatchingFailed, NotFound
from triage.integrations.completions.client import CompletionError, CompletionTimeout
from triage.models import CandidateMatch, Inquiry, InquiryStatus
from triage.services import matching_service


def _reply(*pairs):
    return "```json\n" + json.dumps([
        {"itemId": item.id, "confidence": conf, "reasons": ["colour matches"]} for item, conf in pairs
    ]) + "\n```"


class TestMatchingRun:
    def test_empty_inventory_skips_backend_and_resets_summary(self, fakes, db, make_inquiry):
        inquiry = make_inquiry(confidence_score=90.0, number_of_matches=3)
        result = matching_service().run(inquiry.id)

        assert result.match_count == 0
        assert result.skipped == "empty_inventory"
        assert fakes["completions"].calls == []
        inquiry = db.session.get(Inquiry, inquiry.id)
        assert inquiry.confidence_score is None
        assert inquiry.number_of_matches == 0

    def test_stores_only_candidates_above_floor(self, fakes, db, make_item, make_inquiry):
        wallet, umbrella = make_item("Black wallet"), make_item("Umbrella")
        inquiry = make_inquiry()
        fakes["completions"].script(_reply((wallet, 85), (umbrella, 30)))

        result = matching_service().run(inquiry.id)

        assert result.to_dict() == {
            "matchCount": 1,
            "matches": [{"itemId": wallet.id, "confidence": 85.0, "reasons": ["colour matches"]}],
        }
        rows = db.session.query(CandidateMatch).filter_by(inquiry_id=inquiry.id).all()
        assert [(r.lost_item_id, r.confidence_score) for r in rows] == [(wallet.id, 85.0)]
        inquiry = db.session.get(Inquiry, inquiry.id)
        assert inquiry.confidence_score == 85.0
        assert inquiry.number_of_matches == 1
        assert fakes["publish"].events[-1] == (inquiry.id, InquiryStatus.UNDER_REVIEW)

    def test_prompt_lists_every_unclaimed_item(self, fakes, make_item, make_inquiry):
        a, b = make_item("A"), make_item("B")
        inquiry = make_inquiry()
        matching_service().run(inquiry.id)
        prompt = fakes["completions"].calls[0][1]["content"]
        assert f"(ID: {a.id})" in prompt and f"(ID: {b.id})" in prompt

    def test_rerun_with_no_candidates_resets_summary(self, fakes, db, make_item, make_inquiry):
        item = make_item()
        inquiry = make_inquiry()
        fakes["completions"].script(_reply((item, 70)), "No plausible matches.")
        service = matching_service()

        service.run(inquiry.id)
        assert db.session.get(Inquiry, inquiry.id).number_of_matches == 1

        result = service.run(inquiry.id)
        assert result.match_count == 0
        inquiry = db.session.get(Inquiry, inquiry.id)
        assert inquiry.confidence_score is None
        assert inquiry.number_of_matches == 0

    def test_rerun_overwrites_candidate(self, fakes, db, make_item, make_inquiry):
        item = make_item()
        inquiry = make_inquiry()
        fakes["completions"].script(_reply((item, 60)), _reply((item, 90)))
        service = matching_service()
        service.run(inquiry.id)
        service.run(inquiry.id)
        rows = db.session.query(CandidateMatch).filter_by(inquiry_id=inquiry.id).all()
        assert [r.confidence_score for r in rows] == [90.0]

    def test_timeout_counts_as_zero_candidates(self, fakes, db, make_item, make_inquiry):
        make_item()
        inquiry = make_inquiry(confidence_score=70.0, number_of_matches=1)
        fakes["completions"].script(CompletionTimeout("slow"))

        result = matching_service().run(inquiry.id)

        assert result.skipped == "timeout"
        assert result.match_count == 0
        assert db.session.get(Inquiry, inquiry.id).number_of_matches == 0

    def test_backend_error_aborts_without_writing(self, fakes, db, make_item, make_inquiry):
        make_item()
        inquiry = make_inquiry(confidence_score=70.0, number_of_matches=1)
        fakes["completions"].script(CompletionError("HTTP 500"))

        with pytest.raises(MatchingFailed, match="AI matching failed"):
            matching_service().run(inquiry.id)

        inquiry = db.session.get(Inquiry, inquiry.id)
        assert inquiry.confidence_score == 70.0
        assert inquiry.number_of_matches == 1
        assert fakes["publish"].events == []

    @pytest.mark.parametrize("status", [InquiryStatus.MATCHED, InquiryStatus.RESOLVED, InquiryStatus.REJECTED])
    def test_inactive_inquiry_is_skipped(self, fakes, db, make_item, make_inquiry, status):
        make_item()
        inquiry = make_inquiry(status=status)
        result = matching_service().run(inquiry.id)
        assert result.skipped == "inactive"
        assert fakes["completions"].calls == []
        assert db.session.query(CandidateMatch).count() == 0

    def test_unknown_inquiry(self, fakes):
        with pytest.raises(NotFound):
            matching_service().run(999)
