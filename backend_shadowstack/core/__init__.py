"""
Core utilities: domain exceptions and cross-cutting concerns.

Provides the error taxonomy shared by the analysis engine, stores, service
layer, and API server.
"""

from backend_shadowstack.core.exceptions import (
    AuthorizationError,
    InfrastructureError,
    InputValidationError,
    InsufficientHistoryError,
    NotFoundError,
    ShadowStackError,
    SummaryModelError,
)

__all__ = [
    "AuthorizationError",
    "InfrastructureError",
    "InputValidationError",
    "InsufficientHistoryError",
    "NotFoundError",
    "ShadowStackError",
    "SummaryModelError",
]
