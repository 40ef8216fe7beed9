"""Ordered collection of heartbeat steps.

Steps run sequentially in registration order against one shared context
dict; each result lands in the context under ``result_<name>``.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, Iterable, List

from .base import AgentResult, AgentStatus, BaseAgent


class AgentRegistry:
    def __init__(self, agents: Iterable[BaseAgent] = ()) -> None:
        self._agents: OrderedDict[str, BaseAgent] = OrderedDict()
        for agent in agents:
            self.register(agent)

    def register(self, agent: BaseAgent) -> None:
        self._agents[agent.name] = agent

    def run_all(self, context: Dict[str, Any]) -> List[AgentResult]:
        return [agent.run(context) for agent in self._agents.values()]

    @staticmethod
    def failures(results: Iterable[AgentResult]) -> List[AgentResult]:
        return [r for r in results if r.status == AgentStatus.ERROR]
