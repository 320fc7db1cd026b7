from flask import Blueprint, Flask, g, request, current_app

from ...modules.inquiries.routes import bp as inquiries_bp
from ...modules.admin.routes import bp as admin_bp
from ...modules.matching.routes import bp as matching_bp


def register_api(app: Flask) -> None:
    api_v1 = Blueprint("api_v1", __name__, url_prefix="/api/v1")

    # Lightweight auth context loader with production-safe behavior.
    # In development (DEBUG=True) we accept `X-User-Id` / `X-User-Role` headers
    # to simplify local testing.
    # In production (DEBUG=False), require a signed bearer token issued by the auth service.
    @api_v1.before_request  # type: ignore
    def _load_current_user():
        from ...security import verify_token, ROLES
        uid: str | None = None
        role: str | None = None
        debug_mode = bool(current_app.config.get("DEBUG"))

        # Bearer token takes precedence; EventSource clients can't set headers
        auth = request.headers.get("Authorization") or ""
        token = auth[7:].strip() if auth.lower().startswith("bearer ") else request.args.get("access_token")
        if token:
            uid, role = verify_token(token)
        elif debug_mode:
            # Dev-only header shortcuts
            raw = (request.headers.get("X-User-Id") or "").strip()
            if raw:
                uid = raw
                role = (request.headers.get("X-User-Role") or "user").strip().lower()
                if role not in ROLES:
                    role = "user"
        g.current_user_id = uid  # type: ignore[attr-defined]
        g.current_role = role if uid else None  # type: ignore[attr-defined]

    # Mount feature blueprints
    api_v1.register_blueprint(inquiries_bp)
    api_v1.register_blueprint(admin_bp)
    api_v1.register_blueprint(matching_bp)

    app.register_blueprint(api_v1)
