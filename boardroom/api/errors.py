"""Mapping of domain errors to HTTP errors."""

from fastapi import HTTPException

from ..errors import (
    AgentNotFoundError,
    AlertNotFoundError,
    DecisionNotFoundError,
    DecisionStateError,
)
from ..logging_config import get_logger
from ..models import AgentRole

logger = get_logger(__name__)


def parse_role(value: str) -> AgentRole:
    """Parse a role path/body value, 422 when it is not a known role."""
    try:
        return AgentRole(value)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Invalid role: {value}") from None


def to_http_exception(error: Exception) -> HTTPException:
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, (AgentNotFoundError, DecisionNotFoundError, AlertNotFoundError)):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, DecisionStateError):
        return HTTPException(status_code=409, detail=str(error))

    logger.exception("Unhandled API error")
    return HTTPException(status_code=500, detail=str(error))
