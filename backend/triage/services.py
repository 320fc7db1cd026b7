"""Per-app collaborators and the factories that hand them to each component.

The app factory builds one ``Collaborators`` bundle and stores it in
``app.extensions``; tests swap individual fields for fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from flask import Flask, current_app

from .extensions import db
from .integrations.completions.client import CompletionClient
from .modules.inquiries.workflow import InquiryWorkflow
from .modules.inventory.ledger import InventoryLedger
from .modules.matches.store import MatchStore
from .modules.matching.dispatch import dispatch_matching
from .modules.matching.service import MatchingService
from .modules.notifications.bus import publish_inquiry_update
from .modules.storage.objects import ObjectStorage, storage_from_config


@dataclass
class Collaborators:
    completions: CompletionClient
    storage: ObjectStorage
    dispatch: Callable[[int], bool]
    publish: Callable


def init_app(app: Flask) -> None:
    app.extensions["triage"] = Collaborators(
        completions=CompletionClient.from_config(app.config),
        storage=storage_from_config(app.config),
        dispatch=dispatch_matching,
        publish=publish_inquiry_update,
    )


def collaborators() -> Collaborators:
    return current_app.extensions["triage"]


def match_store() -> MatchStore:
    return MatchStore(db.session)


def inventory_ledger() -> InventoryLedger:
    return InventoryLedger(db.session, match_store())


def matching_service() -> MatchingService:
    c = collaborators()
    store = match_store()
    return MatchingService(
        c.completions,
        session=db.session,
        store=store,
        ledger=InventoryLedger(db.session, store),
        publish=c.publish,
        min_confidence=float(current_app.config.get("MATCHING_MIN_CONFIDENCE", 40)),
    )


def inquiry_workflow() -> InquiryWorkflow:
    c = collaborators()
    store = match_store()
    return InquiryWorkflow(
        session=db.session,
        store=store,
        ledger=InventoryLedger(db.session, store),
        storage=c.storage,
        dispatch=c.dispatch,
        publish=c.publish,
        max_images=int(current_app.config.get("MAX_IMAGES_PER_RECORD", 5)),
    )
