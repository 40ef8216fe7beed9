"""Heartbeat step framework.

Each heartbeat step is an agent run against one SkillContext:
- BaseAgent: execute(context) holds the step logic, run(context) wraps it
- AgentResult: timing, status, counts, error text for one run
- AgentStatus: SKIPPED marks a step with nothing to do for this context
  (no notify capability, Moltbook not configured)

run() never raises. An exception inside execute() becomes an ERROR result
so the remaining steps of the sweep still run.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class AgentStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class AgentResult:
    agent_name: str
    status: AgentStatus = AgentStatus.SUCCESS
    user_id: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    duration_seconds: float = 0.0
    data: Dict[str, Any] = field(default_factory=dict)
    summary: str = ""
    error: Optional[str] = None
    items_processed: int = 0

    @classmethod
    def skipped(cls, agent_name: str, reason: str) -> AgentResult:
        return cls(agent_name=agent_name, status=AgentStatus.SKIPPED,
                   summary=f"Skipped -- {reason}.")


class BaseAgent(ABC):
    def __init__(self, name: str, config: Any = None) -> None:
        self.name = name
        self.config = config
        self.status = AgentStatus.IDLE
        self.last_result: Optional[AgentResult] = None

    @abstractmethod
    def execute(self, context: Dict[str, Any]) -> AgentResult:
        ...

    def run(self, context: Dict[str, Any]) -> AgentResult:
        """Execute with timing and error capture; the result is also put in context."""
        ctx = context.get("skill_context")
        user_id = ctx.user_id if ctx is not None else None
        self.status = AgentStatus.RUNNING
        started = datetime.now(timezone.utc)

        try:
            result = self.execute(context)
            if result.status != AgentStatus.SKIPPED:
                result.status = AgentStatus.SUCCESS
        except Exception as exc:
            logger.exception("Agent '%s' failed for user=%s", self.name, user_id)
            result = AgentResult(agent_name=self.name, status=AgentStatus.ERROR,
                                 error=str(exc))

        completed = datetime.now(timezone.utc)
        result.agent_name = self.name
        result.user_id = user_id
        result.started_at = started.isoformat()
        result.completed_at = completed.isoformat()
        result.duration_seconds = (completed - started).total_seconds()
        self.status = result.status

        logger.debug(
            "Agent '%s' user=%s %s: %s (%d items in %.2fs)",
            self.name, user_id, result.status.value, result.summary,
            result.items_processed, result.duration_seconds,
        )

        context[f"result_{self.name}"] = result
        self.last_result = result
        return result
