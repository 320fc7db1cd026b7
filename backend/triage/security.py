from __future__ import annotations

import os
from typing import Optional, Tuple
from flask import g
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired

from .errors import Forbidden, Unauthorized

ROLES = ("user", "assistant", "admin")
STAFF_ROLES = frozenset({"assistant", "admin"})


def _serializer() -> URLSafeTimedSerializer:
    secret = os.getenv("SECRET_KEY", "change-me")
    # Salt provides namespace isolation for tokens
    return URLSafeTimedSerializer(secret_key=secret, salt="auth-token")


def issue_token(user_id: str, role: str) -> str:
    """Issue a signed token for a user.

    Payload is minimal: {"id": str, "role": str}
    """
    s = _serializer()
    return s.dumps({"id": str(user_id), "role": str(role or "user")})


def verify_token(token: str) -> Tuple[Optional[str], Optional[str]]:
    """Verify a token and return (user_id, role) if valid, else (None, None).

    Max age configurable via AUTH_TOKEN_MAX_AGE seconds (default 30 days).
    """
    max_age_default = 60 * 60 * 24 * 30  # 30 days
    try:
        max_age = int(os.getenv("AUTH_TOKEN_MAX_AGE", str(max_age_default)))
    except ValueError:
        max_age = max_age_default
    try:
        data = _serializer().loads(token, max_age=max_age)
    except (BadSignature, SignatureExpired):
        return (None, None)
    if not isinstance(data, dict) or not data.get("id"):
        return (None, None)
    role = str(data.get("role") or "user")
    return (str(data["id"]), role if role in ROLES else "user")


def current_user_id() -> str | None:
    return getattr(g, "current_user_id", None)


def current_role() -> str | None:
    return getattr(g, "current_role", None)


def is_staff() -> bool:
    return current_role() in STAFF_ROLES


def require_user() -> str:
    uid = current_user_id()
    if not uid:
        raise Unauthorized("Authentication required")
    return uid


def require_staff() -> str:
    uid = require_user()
    if not is_staff():
        raise Forbidden("Staff access required")
    return uid
