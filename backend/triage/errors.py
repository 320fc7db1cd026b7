"""Domain errors raised by the triage services.

Routes never build error responses for these by hand; the handler
registered in ``register_error_handlers`` renders every ``TriageError`` as
``{"error": message}`` with the error's status code.
"""

from __future__ import annotations

from flask import Flask, jsonify


class TriageError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(TriageError):
    status_code = 400

    def __init__(self, message: str, errors: dict | None = None):
        super().__init__(message)
        self.errors = errors or {}


class Unauthorized(TriageError):
    status_code = 401


class Forbidden(TriageError):
    status_code = 403


class NotFound(TriageError):
    status_code = 404


class NoLongerAvailable(NotFound):
    """The row a user acted on was already consumed by another actor."""


class TransitionConflict(TriageError):
    status_code = 409


class MatchingFailed(TriageError):
    status_code = 500


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(TriageError)
    def _triage_error(err: TriageError):
        body: dict = {"error": err.message}
        if isinstance(err, ValidationFailed) and err.errors:
            body["fields"] = err.errors
        return jsonify(body), err.status_code
