"""Agents module."""

from .agent import Agent, IAgent
from .descriptor import (
    AutoApprovePolicy,
    RoleDescriptor,
    TaskHandler,
    confidence_above,
    never_auto_approve,
)

__all__ = [
    "Agent",
    "IAgent",
    "AutoApprovePolicy",
    "RoleDescriptor",
    "TaskHandler",
    "confidence_above",
    "never_auto_approve",
]
