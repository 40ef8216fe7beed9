"""Skill entry point: wires clients, commands and the heartbeat sweep.

The host talks to a ZigmaSkill through three things:
- commands: name -> description + JSON parameter schema
- handle(name, ctx, params): run a command, always returns markdown
- heartbeat: {"interval": cron, "handler": run_heartbeat}

Heartbeat steps are agents. User agents (tracked markets, strong signal)
run against the calling user's memory; community agents (daily post,
comment replies) act on the shared Moltbook account, so the scheduler
runs them once per sweep rather than once per user.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from agents.base import AgentResult
from agents.community_agent import CommentReplyAgent, DailyPostAgent
from agents.registry import AgentRegistry
from agents.strong_signal_agent import StrongSignalAgent
from agents.tracked_market_agent import TrackedMarketAgent
from clients.moltbook_client import MoltbookClient
from clients.oracle_client import OracleClient
from config import AppConfig, load_config, validate_config
from .base import SkillContext
from .commands import SkillCommands
from .entitlements import EntitlementTracker

logger = logging.getLogger(__name__)


class ZigmaSkill:
    name = "zigma-oracle"
    version = "1.0.0"
    description = "Prediction market intelligence from the Zigma oracle"

    def __init__(self, config: AppConfig,
                 oracle: Optional[OracleClient] = None,
                 moltbook: Optional[MoltbookClient] = None) -> None:
        self.config = config
        self.oracle = oracle or OracleClient(config.oracle)
        self.moltbook = moltbook or MoltbookClient(config.moltbook)
        self.tracker = EntitlementTracker(config, self.oracle)
        self.registry = SkillCommands(config, self.oracle, self.tracker).build_registry()

        self.user_agents = AgentRegistry([TrackedMarketAgent(), StrongSignalAgent()])
        self.community_agents = AgentRegistry([DailyPostAgent(), CommentReplyAgent()])

    @property
    def commands(self) -> Dict[str, Dict[str, Any]]:
        return self.registry.describe()

    def handle(self, command: str, ctx: SkillContext,
               params: Optional[Mapping[str, Any]] = None) -> str:
        return self.registry.dispatch(command, ctx, params)

    # ── Heartbeat ────────────────────────────────────────────

    def build_context(self, ctx: SkillContext) -> Dict[str, Any]:
        return {
            "skill_context": ctx,
            "oracle_client": self.oracle,
            "moltbook_client": self.moltbook,
            "config": self.config,
        }

    def run_user_heartbeat(self, ctx: SkillContext) -> List[AgentResult]:
        return self._run(self.user_agents, ctx)

    def run_community_heartbeat(self, ctx: SkillContext) -> List[AgentResult]:
        return self._run(self.community_agents, ctx)

    def run_heartbeat(self, ctx: SkillContext) -> List[AgentResult]:
        """Full sweep for a host that drives one context per heartbeat."""
        return self.run_user_heartbeat(ctx) + self.run_community_heartbeat(ctx)

    @property
    def heartbeat(self) -> Dict[str, Any]:
        return {"interval": self.config.scheduler.cron, "handler": self.run_heartbeat}

    def _run(self, registry: AgentRegistry, ctx: SkillContext) -> List[AgentResult]:
        results = registry.run_all(self.build_context(ctx))
        failed = registry.failures(results)
        if failed:
            logger.warning("Heartbeat for user=%s had failing steps: %s",
                           ctx.user_id, ", ".join(r.agent_name for r in failed))
        return results


def build_skill(config: Optional[AppConfig] = None) -> ZigmaSkill:
    """Load and validate configuration, then build the skill."""
    config = config or load_config()
    validate_config(config)
    return ZigmaSkill(config)
