"""Unit tests for prompt building and completion reply parsing."""

from types import SimpleNamespace

from triage.models import ItemCategory
from triage.modules.matching.parsing import extract_json_array, normalize_candidates, parse_candidates
from triage.modules.matching.prompts import build_messages, describe_inquiry


class TestExtractJsonArray:
    def test_bare_array(self):
        assert extract_json_array('[{"itemId": 1}]') == [{"itemId": 1}]

    def test_array_wrapped_in_prose_and_fences(self):
        reply = 'Here are the matches:\n```json\n[{"itemId": 3, "confidence": 90}]\n```\nHope this helps.'
        assert extract_json_array(reply) == [{"itemId": 3, "confidence": 90}]

    def test_first_balanced_array_wins(self):
        reply = '[{"itemId": 1, "confidence": 70}] and also [{"itemId": 2, "confidence": 80}]'
        assert extract_json_array(reply) == [{"itemId": 1, "confidence": 70}]

    def test_brackets_inside_strings(self):
        reply = '[{"itemId": 1, "reasons": ["size [large]", "colour ]"]}]'
        assert extract_json_array(reply)[0]["reasons"] == ["size [large]", "colour ]"]

    def test_skips_brackets_that_are_not_json(self):
        reply = 'Item [A] looks close: [{"itemId": 1, "confidence": 60}]'
        assert extract_json_array(reply) == [{"itemId": 1, "confidence": 60}]

    def test_no_array(self):
        assert extract_json_array("No matches found.") is None
        assert extract_json_array("") is None
        assert extract_json_array(None) is None
        assert extract_json_array("[unterminated") is None


class TestNormalizeCandidates:
    def test_drops_unknown_ids(self):
        raw = [{"itemId": 1, "confidence": 90}, {"itemId": 99, "confidence": 95}]
        out = normalize_candidates(raw, {1, 2})
        assert [c.item_id for c in out] == [1]

    def test_threshold_is_inclusive_at_40(self):
        raw = [
            {"itemId": 1, "confidence": 40},
            {"itemId": 2, "confidence": 39.9},
            {"itemId": 3, "confidence": 30},
        ]
        out = normalize_candidates(raw, {1, 2, 3})
        assert [c.item_id for c in out] == [1]

    def test_string_ids_and_clamped_confidence(self):
        raw = [{"itemId": "7", "confidence": "150", "reasons": "same brand"}]
        (cand,) = normalize_candidates(raw, {7})
        assert cand.item_id == 7
        assert cand.confidence == 100.0
        assert cand.reasons == ["same brand"]

    def test_rejects_bad_confidence(self):
        raw = [
            {"itemId": 1, "confidence": "high"},
            {"itemId": 2},
            {"itemId": 3, "confidence": True},
            {"itemId": 4, "confidence": float("nan")},
        ]
        assert normalize_candidates(raw, {1, 2, 3, 4}) == []

    def test_later_duplicate_wins(self):
        raw = [
            {"itemId": 1, "confidence": 50},
            {"itemId": 2, "confidence": 60},
            {"itemId": 1, "confidence": 80},
        ]
        out = normalize_candidates(raw, {1, 2})
        assert [(c.item_id, c.confidence) for c in out] == [(1, 80.0), (2, 60.0)]

    def test_ignores_non_objects(self):
        assert normalize_candidates([1, "two", None, [3]], {1, 2, 3}) == []

    def test_details_kept(self):
        (cand,) = normalize_candidates([{"itemId": 1, "confidence": 70, "details": " close "}], {1})
        assert cand.reasons_payload() == {"reasons": [], "details": "close"}


class TestParseCandidates:
    def test_unparseable_reply_is_zero_candidates(self):
        assert parse_candidates("I could not find anything.", {1}) == []

    def test_custom_floor(self):
        reply = '[{"itemId": 1, "confidence": 55}]'
        assert parse_candidates(reply, {1}, min_confidence=60) == []
        assert len(parse_candidates(reply, {1}, min_confidence=50)) == 1


class TestPrompts:
    def _inquiry(self, **kwargs):
        fields = dict(
            title="Lost wallet",
            description="Black leather",
            category=ItemCategory.ACCESSORIES,
            color=None,
            brand="",
            distinguishing_features=None,
            location_lost="Library",
            date_lost=None,
        )
        fields.update(kwargs)
        return SimpleNamespace(**fields)

    def test_blank_fields_marked_not_specified(self):
        text = describe_inquiry(self._inquiry())
        assert "Color: Not specified" in text
        assert "Brand: Not specified" in text
        assert "Category: accessories" in text
        assert "Location Lost: Library" in text

    def test_messages_carry_inventory_ids_and_floor(self):
        item = SimpleNamespace(
            id=42, name="Wallet", description=None, category=ItemCategory.ACCESSORIES, color="black",
            brand=None, distinguishing_features=None, location_found="Library", date_found=None,
        )
        system, user = build_messages(self._inquiry(), [item], min_confidence=40)
        assert system["role"] == "system"
        assert "confidence >= 40" in system["content"]
        assert "(ID: 42)" in user["content"]
        assert "- Color: black" in user["content"]
        assert "- Brand: N/A" in user["content"]
