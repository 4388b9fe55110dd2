"""
Error taxonomy shared by the store, the HTTP routes and the sync client
"""

import logging
from typing import NoReturn, Optional

from fastapi import HTTPException

logger = logging.getLogger(__name__)


class RosterError(Exception):
    """Base class for every roster failure; the message is what clients see."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(RosterError):
    """A required identifier or field was not supplied."""


class NotFound(RosterError):
    """The referenced group or member does not exist."""


class NoFieldsProvided(RosterError):
    """An update call carried nothing to change."""


class TransportFailure(RosterError):
    """The server was unreachable or answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationMissing(RosterError):
    """A required environment value is absent. Fatal at startup."""


def require(condition, message: str) -> None:
    if not condition:
        raise ValidationError(message)


def raise_http_error(exc: Exception, context: str) -> NoReturn:
    """Translate a store/route failure into the HTTPException the API returns"""
    if isinstance(exc, HTTPException):
        raise exc
    if isinstance(exc, ValidationError):
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.error(f"{context} error: {exc}")
    raise HTTPException(status_code=500, detail=str(exc)) from exc
