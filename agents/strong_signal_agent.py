"""Strong Signal Agent — one notification per new STRONG_TRADE signal.

Looks at the single top signal above the strong-edge floor. If it is a
STRONG_TRADE for a market the user was not already told about, notify
and remember its market id.

Schedule: every heartbeat (15 minutes).
"""

from __future__ import annotations

from typing import Any, Dict

from .base import AgentResult, BaseAgent
from db.memory import LAST_STRONG_SIGNAL_KEY
from skill.formatters import format_strong_signal_alert


class StrongSignalAgent(BaseAgent):
    def __init__(self, config: Any = None) -> None:
        super().__init__(name="strong_signal", config=config)

    def execute(self, context: Dict[str, Any]) -> AgentResult:
        ctx = context["skill_context"]
        oracle = context["oracle_client"]
        min_edge = context["config"].limits.strong_signal_min_edge

        if not ctx.notify:
            return AgentResult.skipped(self.name, "no notify capability")

        signals = oracle.get_signals(limit=1, min_edge=min_edge)
        if not signals or signals[0].tier != "STRONG_TRADE":
            return AgentResult(
                agent_name=self.name,
                summary="No strong signal.",
            )

        top = signals[0]
        if ctx.memory.get(LAST_STRONG_SIGNAL_KEY) == top.market_id:
            return AgentResult(
                agent_name=self.name,
                summary=f"Already notified {top.market_id}.",
                data={"market_id": top.market_id, "notified": False},
            )

        ctx.notify(format_strong_signal_alert(top))
        ctx.memory.set(LAST_STRONG_SIGNAL_KEY, top.market_id)
        return AgentResult(
            agent_name=self.name,
            items_processed=1,
            summary=f"Notified strong signal {top.market_id}.",
            data={"market_id": top.market_id, "notified": True},
        )
