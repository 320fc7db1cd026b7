"""Inquiry lifecycle: legal edges and per-status behaviour.

Every table below is keyed by ``InquiryStatus`` and must cover all five
members; ``_require_complete`` enforces that when the module is imported,
so adding a status without deciding its behaviour fails loudly.
"""

from __future__ import annotations

from ...models.enums import InquiryStatus

S = InquiryStatus

ALLOWED_TRANSITIONS: dict[InquiryStatus, frozenset[InquiryStatus]] = {
    # submitted -> rejected covers staff no-match before the optimistic
    # under_review write has landed
    S.SUBMITTED: frozenset({S.UNDER_REVIEW, S.REJECTED}),
    S.UNDER_REVIEW: frozenset({S.MATCHED, S.REJECTED}),
    S.MATCHED: frozenset({S.RESOLVED, S.REJECTED}),
    S.RESOLVED: frozenset(),
    S.REJECTED: frozenset(),
}

STATUS_LABELS: dict[InquiryStatus, str] = {
    S.SUBMITTED: "Submitted",
    S.UNDER_REVIEW: "Under Review",
    S.MATCHED: "Match Found",
    S.RESOLVED: "Resolved",
    S.REJECTED: "No Match Found",
}

# What the owner may do from each status
USER_ACTIONS: dict[InquiryStatus, tuple[str, ...]] = {
    S.SUBMITTED: (),
    S.UNDER_REVIEW: (),
    S.MATCHED: ("confirm", "reject"),
    S.RESOLVED: (),
    S.REJECTED: (),
}

# What staff may do from each status
STAFF_ACTIONS: dict[InquiryStatus, tuple[str, ...]] = {
    S.SUBMITTED: ("no_match",),
    S.UNDER_REVIEW: ("approve", "no_match"),
    S.MATCHED: (),
    S.RESOLVED: (),
    S.REJECTED: (),
}

# Statuses in which a matching run may still write candidates
MATCHABLE: frozenset[InquiryStatus] = frozenset({S.SUBMITTED, S.UNDER_REVIEW})
TERMINAL: frozenset[InquiryStatus] = frozenset(s for s, nxt in ALLOWED_TRANSITIONS.items() if not nxt)


def _require_complete(name: str, table: dict) -> None:
    missing = set(InquiryStatus) - set(table)
    if missing:
        raise RuntimeError(f"{name} has no entry for: {sorted(m.value for m in missing)}")


for _name, _table in (
    ("ALLOWED_TRANSITIONS", ALLOWED_TRANSITIONS),
    ("STATUS_LABELS", STATUS_LABELS),
    ("USER_ACTIONS", USER_ACTIONS),
    ("STAFF_ACTIONS", STAFF_ACTIONS),
):
    _require_complete(_name, _table)


def coerce_status(value: InquiryStatus | str | None) -> InquiryStatus | None:
    if value is None or isinstance(value, InquiryStatus):
        return value
    return InquiryStatus(str(value))


def can_transition(current: InquiryStatus | str | None, target: InquiryStatus | str) -> bool:
    """Return True when ``current -> target`` is an edge of the lifecycle.

    ``None`` stands for "no row yet"; the only way in is ``submitted``.
    """
    target = coerce_status(target)
    current = coerce_status(current)
    if current is None:
        return target is S.SUBMITTED
    return target in ALLOWED_TRANSITIONS[current]


def status_label(value: InquiryStatus | str) -> str:
    return STATUS_LABELS[coerce_status(value)]


def user_actions(value: InquiryStatus | str) -> list[str]:
    return list(USER_ACTIONS[coerce_status(value)])


def staff_actions(value: InquiryStatus | str) -> list[str]:
    return list(STAFF_ACTIONS[coerce_status(value)])
