"""Pytest fixtures for the triage backend.

Every test gets a fresh app on an in-memory SQLite database with the
app context pushed for the whole test. External collaborators are
replaced with fakes:
- completions: scripted replies (or exceptions), records every prompt
- storage: keeps uploads in a dict
- dispatch: records inquiry ids instead of starting matching
- publish: records (inquiry id, status) pairs

Usage:
    def test_overview(client, staff_headers):
        response = client.get("/api/v1/admin/overview", headers=staff_headers)
        assert response.status_code == 200
"""

import io

import pytest
from PIL import Image

from triage import create_app
from triage.extensions import db as _db
from triage.models import Inquiry, InquiryStatus, ItemCategory
from triage.modules.matches.store import Candidate
from triage.modules.storage.objects import ObjectStorage
from triage.services import inquiry_workflow, inventory_ledger, match_store


class FakeCompletions:
    def __init__(self):
        self.replies = []
        self.calls = []

    def script(self, *replies):
        self.replies.extend(replies)

    def complete(self, messages):
        self.calls.append(messages)
        reply = self.replies.pop(0) if self.replies else "[]"
        if isinstance(reply, BaseException):
            raise reply
        return reply


class MemoryStorage(ObjectStorage):
    def __init__(self):
        self.objects = {}

    def upload(self, path, data, content_type):
        self.objects[path] = (data, content_type)
        return f"memory://{path}"


class RecordingDispatch:
    def __init__(self):
        self.calls = []

    def __call__(self, inquiry_id):
        self.calls.append(inquiry_id)
        return True


class RecordingPublish:
    def __init__(self):
        self.events = []

    def __call__(self, inquiry):
        self.events.append((inquiry.id, inquiry.status))


@pytest.fixture
def app(tmp_path):
    app = create_app("testing", {"UPLOAD_FOLDER": str(tmp_path / "uploads")})
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def completions(app):
    fake = FakeCompletions()
    app.extensions["triage"].completions = fake
    return fake


@pytest.fixture
def storage(app):
    fake = MemoryStorage()
    app.extensions["triage"].storage = fake
    return fake


@pytest.fixture
def dispatched(app):
    fake = RecordingDispatch()
    app.extensions["triage"].dispatch = fake
    return fake


@pytest.fixture
def published(app):
    fake = RecordingPublish()
    app.extensions["triage"].publish = fake
    return fake


@pytest.fixture
def fakes(completions, storage, dispatched, published):
    """All collaborators replaced; most tests want exactly this."""
    return {"completions": completions, "storage": storage, "dispatch": dispatched, "publish": published}


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user_headers():
    return {"X-User-Id": "user-1", "X-User-Role": "user"}


@pytest.fixture
def other_user_headers():
    return {"X-User-Id": "user-2", "X-User-Role": "user"}


@pytest.fixture
def staff_headers():
    return {"X-User-Id": "staff-1", "X-User-Role": "assistant"}


@pytest.fixture
def workflow(fakes):
    return inquiry_workflow()


@pytest.fixture
def store(app):
    return match_store()


@pytest.fixture
def ledger(app):
    return inventory_ledger()


@pytest.fixture
def make_item(ledger, db):
    def _make(name="Black wallet", **kwargs):
        data = {"name": name, "category": ItemCategory.ACCESSORIES}
        data.update(kwargs)
        item = ledger.add_item(data, added_by="staff-1")
        db.session.commit()
        return item
    return _make


@pytest.fixture
def make_inquiry(db):
    def _make(user_id="user-1", status=InquiryStatus.UNDER_REVIEW, **kwargs):
        data = {
            "title": "Lost wallet",
            "description": "Black leather wallet with a red stripe",
            "category": ItemCategory.ACCESSORIES,
        }
        data.update(kwargs)
        inquiry = Inquiry(user_id=user_id, status=status, image_urls=[], **data)
        db.session.add(inquiry)
        db.session.commit()
        return inquiry
    return _make


@pytest.fixture
def add_candidates(store, db):
    def _add(inquiry, *pairs):
        """pairs: (item, confidence)"""
        store.upsert_candidates(inquiry.id, [Candidate(item.id, conf, ["colour"]) for item, conf in pairs])
        db.session.commit()
    return _add


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color=(200, 10, 10)).save(buf, format="PNG")
    return buf.getvalue()
