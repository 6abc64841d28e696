"""
Base utilities for API Blueprints

Provides common dependencies and helper functions shared across blueprints.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from flask import g, jsonify

from badgeledger.core.exceptions import (
    AuthorizationError,
    BadgeLedgerError,
    get_error_context,
    is_recoverable_error,
)

if TYPE_CHECKING:
    from badgeledger.core.achievement_service import AchievementService
    from badgeledger.core.config import Settings

logger = logging.getLogger(__name__)


def get_api_context() -> Dict[str, Any]:
    """Get the API context stored in Flask's g object during request setup."""
    return g.get("api_context", {})


def get_service() -> "AchievementService":
    return get_api_context()["service"]


def get_settings() -> Optional["Settings"]:
    return get_api_context().get("settings")


def success_response(payload: Dict[str, Any], status: int = 200) -> Tuple[Any, int]:
    """Return a success payload with consistent structure."""
    body = {"success": True, **payload}
    return jsonify(body), status


def error_response(
    message: str,
    status: int = 400,
    code: str = "bad_request",
    context: Optional[Dict[str, Any]] = None,
    event: str = "api.error",
) -> Tuple[Any, int]:
    """Return an error response and log it."""
    level = logging.ERROR if status >= 500 else logging.WARNING
    logger.log(
        level,
        "API error: %s",
        message,
        extra={"event": event, "code": code, "status": status, **(context or {})},
    )
    return jsonify({"success": False, "error": message, "code": code}), status


def handle_exception(error: Exception, context_str: str) -> Tuple[Any, int]:
    """
    Map an exception raised by a handler to an HTTP response.

    ValueError (bad address or number) -> 400, AuthorizationError -> 403,
    recoverable storage failure -> 503, anything else -> 500 with a generic
    message.
    """
    details = {"context": context_str, **get_error_context(error)}

    if isinstance(error, AuthorizationError):
        return error_response(
            error.message[:1].upper() + error.message[1:],
            status=403,
            code="forbidden",
            context=details,
            event="api.forbidden",
        )
    if isinstance(error, (ValueError, TypeError)):
        return error_response(str(error), status=400, code="invalid_input", context=details)
    if isinstance(error, BadgeLedgerError) and is_recoverable_error(error):
        return error_response(
            "Service temporarily unavailable",
            status=503,
            code="unavailable",
            context=details,
            event="api.unavailable",
        )
    logger.exception(
        "Unhandled API exception", extra={"event": "api.exception", "context": context_str}
    )
    return error_response(
        "Internal server error",
        status=500,
        code="internal_error",
        context=details,
        event="api.exception",
    )
