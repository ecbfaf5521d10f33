"""Decision and alert data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .agents import AgentRole


class DecisionType(str, Enum):
    """Kinds of auditable decisions an agent can record."""

    RECOMMEND_ACTION = "recommend_action"
    APPROVE_PLAN = "approve_plan"
    ADJUST_BUDGET = "adjust_budget"
    ASSIGN_WORK = "assign_work"
    FLAG_RISK = "flag_risk"
    ESCALATE_TO_HUMAN = "escalate_to_human"


class Impact(str, Enum):
    """Ordinal impact / severity scale."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _IMPACT_RANK[self]


_IMPACT_RANK = {
    Impact.LOW: 0,
    Impact.MEDIUM: 1,
    Impact.HIGH: 2,
    Impact.CRITICAL: 3,
}


@dataclass
class AgentDecision:
    """Audit record of a judgment made by an agent."""

    id: str
    agent_id: str
    agent_role: AgentRole
    decision_type: DecisionType
    title: str
    description: str
    reasoning: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0
    impact: Impact = Impact.LOW
    approved: bool = False
    approved_by: str | None = None
    executed_at: datetime | None = None
    rejected: bool = False
    rejected_by: str | None = None
    rejection_reason: str | None = None
    created_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return not self.approved and not self.rejected

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "agent_id": self.agent_id,
            "agent_role": self.agent_role.value,
            "decision_type": self.decision_type.value,
            "title": self.title,
            "description": self.description,
            "reasoning": self.reasoning,
            "data": self.data,
            "confidence": self.confidence,
            "impact": self.impact.value,
            "approved": self.approved,
            "approved_by": self.approved_by,
            "executed_at": self.executed_at.isoformat() if self.executed_at else None,
            "rejected": self.rejected,
            "rejected_by": self.rejected_by,
            "rejection_reason": self.rejection_reason,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class AgentAlert:
    """An operator-facing alert raised by an agent; active until resolved."""

    id: str
    agent_id: str
    agent_role: AgentRole
    title: str
    message: str
    severity: Impact = Impact.MEDIUM
    data: dict[str, Any] = field(default_factory=dict)
    resolved: bool = False
    resolved_by: str | None = None
    resolved_at: datetime | None = None
    created_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "agent_id": self.agent_id,
            "agent_role": self.agent_role.value,
            "title": self.title,
            "message": self.message,
            "severity": self.severity.value,
            "data": self.data,
            "resolved": self.resolved,
            "resolved_by": self.resolved_by,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
