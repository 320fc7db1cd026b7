"""Integration tests for POST /api/v1/match-inquiry and its CORS behaviour."""

import json

from triage.integrations.completions.client import CompletionError
from triage.models import InquiryStatus as S

URL = "/api/v1/match-inquiry"


class TestPreflight:
    def test_options_is_permissive(self, client, fakes):
        response = client.options(
            URL,
            headers={
                "Origin": "https://frontend.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization, content-type",
            },
        )
        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        allowed = response.headers["Access-Control-Allow-Headers"].lower()
        assert "authorization" in allowed and "content-type" in allowed


class TestMatchInquiry:
    def test_owner_runs_matching(self, client, fakes, make_item, make_inquiry, user_headers):
        item = make_item()
        inquiry = make_inquiry()
        fakes["completions"].script(json.dumps([{"itemId": item.id, "confidence": 88, "reasons": ["brand"]}]))

        response = client.post(URL, json={"inquiryId": inquiry.id}, headers={**user_headers, "Origin": "https://frontend.example"})

        assert response.status_code == 200
        assert response.headers["Access-Control-Allow-Origin"] == "*"
        assert response.get_json() == {"matchCount": 1, "matches": [{"itemId": item.id, "confidence": 88.0, "reasons": ["brand"]}]}

    def test_staff_may_rerun_any(self, client, fakes, make_inquiry, staff_headers):
        inquiry = make_inquiry(number_of_matches=2, confidence_score=60.0)
        response = client.post(URL, json={"inquiryId": inquiry.id}, headers=staff_headers)
        assert response.status_code == 200
        assert response.get_json() == {"matchCount": 0, "matches": []}

    def test_other_user_forbidden(self, client, fakes, make_inquiry, other_user_headers):
        inquiry = make_inquiry()
        response = client.post(URL, json={"inquiryId": inquiry.id}, headers=other_user_headers)
        assert response.status_code == 403

    def test_missing_inquiry_id(self, client, fakes, user_headers):
        response = client.post(URL, json={}, headers=user_headers)
        assert response.status_code == 400
        assert response.get_json()["error"]

    def test_unknown_inquiry(self, client, fakes, user_headers):
        response = client.post(URL, json={"inquiryId": 4242}, headers=user_headers)
        assert response.status_code == 404
        assert "error" in response.get_json()

    def test_backend_failure(self, client, fakes, make_item, make_inquiry, user_headers):
        make_item()
        inquiry = make_inquiry()
        fakes["completions"].script(CompletionError("HTTP 502"))
        response = client.post(URL, json={"inquiryId": inquiry.id}, headers={**user_headers, "Origin": "https://x.example"})
        assert response.status_code == 500
        assert response.get_json() == {"error": "AI matching failed"}
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    def test_inactive_inquiry(self, client, fakes, make_item, make_inquiry, user_headers):
        make_item()
        inquiry = make_inquiry(status=S.RESOLVED)
        response = client.post(URL, json={"inquiryId": inquiry.id}, headers=user_headers)
        assert response.status_code == 200
        assert response.get_json()["matchCount"] == 0
        assert fakes["completions"].calls == []
