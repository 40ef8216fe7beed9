"""Tracked Market Agent — edge-change alerts for a user's watchlist.

For each tracked market:
1. Fetch the latest analysis (a failure skips that market only)
2. Compare abs(edge) with the abs(edge) stored on the previous sweep
3. Notify when the change reaches the market's threshold
4. Store the new edge whether or not an alert fired

Schedule: every heartbeat (15 minutes).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from .base import AgentResult, BaseAgent
from db.memory import load_tracked, save_tracked
from skill.formatters import format_edge_alert

logger = logging.getLogger(__name__)


def edge_change(current_edge: float, last_edge: float) -> float:
    """Change in absolute edge, both in percentage points."""
    return abs(abs(current_edge) - abs(last_edge))


class TrackedMarketAgent(BaseAgent):
    def __init__(self, config: Any = None) -> None:
        super().__init__(name="tracked_markets", config=config)

    def execute(self, context: Dict[str, Any]) -> AgentResult:
        ctx = context["skill_context"]
        oracle = context["oracle_client"]

        tracked = load_tracked(ctx.memory)
        if not tracked:
            return AgentResult(
                agent_name=self.name,
                summary="No tracked markets.",
            )

        new_edges: Dict[str, float] = {}
        alerts_sent = 0
        errors: List[str] = []

        for market in tracked:
            try:
                analysis = oracle.get_market_analysis(market.market_id)
                edge = abs(analysis.edge * 100)
                last_edge = market.last_edge or 0.0

                if edge_change(edge, last_edge) >= market.threshold and ctx.notify:
                    ctx.notify(format_edge_alert(market.market_id, analysis, last_edge, edge))
                    alerts_sent += 1

                new_edges[market.market_id] = edge
            except Exception as e:
                logger.warning("Failed to check tracked market %s: %s", market.market_id, e)
                errors.append(f"{market.market_id}: {e}")

        if new_edges:
            # Re-read under the lock so a track/untrack during the sweep survives
            with ctx.memory.locked():
                current = load_tracked(ctx.memory)
                for market in current:
                    if market.market_id in new_edges:
                        market.last_edge = new_edges[market.market_id]
                save_tracked(ctx.memory, current)

        return AgentResult(
            agent_name=self.name,
            items_processed=len(new_edges),
            summary=f"Checked {len(new_edges)}/{len(tracked)} markets, {alerts_sent} alerts.",
            data={"alerts_sent": alerts_sent, "edges": new_edges, "errors": errors[:10]},
        )
