"""
Application-level exceptions.

Each error carries a coarse category and HTTP status so the API layer can
return a consistent, generic response without leaking internal detail.
Only authorization, validation and infrastructure failures cross component
boundaries; insufficient data and summary model failures are resolved inside
the components that meet them.
"""

from __future__ import annotations


class ShadowStackError(Exception):
    """Base class for all domain errors."""

    category = "server_error"
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class AuthorizationError(ShadowStackError):
    """Acting user is unknown or does not have the AI feature enabled."""

    category = "unauthorized"
    status_code = 403
    public_message = "AI not enabled for user"


class InputValidationError(ShadowStackError):
    """Required field missing or malformed (wallet address, transaction, user id)."""

    category = "bad_request"
    status_code = 400
    public_message = "Missing required fields"


class InsufficientHistoryError(ShadowStackError):
    """Baseline requested from an empty transaction sample."""

    category = "bad_request"
    status_code = 400
    public_message = "Insufficient transaction history"


class NotFoundError(ShadowStackError):
    category = "not_found"
    status_code = 404
    public_message = "No baseline found"


class InfrastructureError(ShadowStackError):
    """Baseline cache, history store or alert store unreachable or failing."""

    category = "server_error"
    status_code = 500
    public_message = "Internal server error"


class SummaryModelError(ShadowStackError):
    """
    Generative text call failed: transport error, timeout, non-2xx, malformed or empty output.

    Raised by TextSummarizer implementations and always collapsed to the
    templated summary by SummaryGenerator.
    """

    category = "model_error"
    status_code = 502
    public_message = "Summary model unavailable"
