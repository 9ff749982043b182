from __future__ import annotations


class ContestError(Exception):
    """Business-rule failure. Routes render it as {success: false, message}."""
    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ContestError):
    status_code = 400


class InvalidState(ContestError):
    status_code = 400


class Forbidden(ContestError):
    status_code = 403


class NotFound(ContestError):
    status_code = 404


class Conflict(ContestError):
    status_code = 409
