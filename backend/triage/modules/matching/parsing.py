"""Turning a completion reply into validated candidates.

The model is asked for a bare JSON array but routinely wraps it in prose or
code fences, invents ids, or ignores the confidence floor; everything it
says is treated as untrusted input.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Iterable

from ..matches.store import Candidate

logger = logging.getLogger(__name__)

MAX_REASONS = 10
MAX_REASON_LENGTH = 200


def extract_json_array(text: str | None) -> list | None:
    """Return the first balanced ``[...]`` in ``text`` that decodes as a JSON array.

    Brackets inside JSON strings are skipped. Returns None when no such
    array exists.
    """
    if not text:
        return None
    start = text.find("[")
    while start != -1:
        end = _matching_bracket(text, start)
        value = None
        if end is not None:
            try:
                value = json.loads(text[start:end + 1])
            except ValueError:
                value = None
        if isinstance(value, list):
            return value
        start = text.find("[", start + 1)
    return None


def _matching_bracket(text: str, start: int) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for pos in range(start, len(text)):
        ch = text[pos]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return pos
    return None


def _as_item_id(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _as_confidence(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        conf = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(conf) or math.isinf(conf):
        return None
    return max(0.0, min(100.0, conf))


def _as_reasons(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    reasons = []
    for r in value:
        if isinstance(r, (str, int, float)) and not isinstance(r, bool):
            text = str(r).strip()
            if text:
                reasons.append(text[:MAX_REASON_LENGTH])
    return reasons[:MAX_REASONS]


def normalize_candidates(raw: Iterable, known_ids: set[int], min_confidence: float = 40) -> list[Candidate]:
    """Validate raw entries against the inventory that was offered.

    Entries naming an item that was not in the prompt, lacking a usable
    confidence, or scoring under ``min_confidence`` are dropped. When the
    model lists an item twice the later entry wins, keeping its first
    position.
    """
    by_item: dict[int, Candidate] = {}
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        item_id = _as_item_id(entry.get("itemId", entry.get("item_id")))
        if item_id is None or item_id not in known_ids:
            if item_id is not None:
                logger.info("Dropping candidate for unknown item %s", item_id)
            continue
        confidence = _as_confidence(entry.get("confidence"))
        if confidence is None or confidence < min_confidence:
            continue
        details = entry.get("details")
        by_item[item_id] = Candidate(
            item_id=item_id,
            confidence=confidence,
            reasons=_as_reasons(entry.get("reasons")),
            details=details.strip() if isinstance(details, str) and details.strip() else None,
        )
    return list(by_item.values())


def parse_candidates(reply: str | None, known_ids: set[int], min_confidence: float = 40) -> list[Candidate]:
    raw = extract_json_array(reply)
    if raw is None:
        logger.warning("No JSON array in completion reply; treating as zero candidates")
        return []
    return normalize_candidates(raw, known_ids, min_confidence)
