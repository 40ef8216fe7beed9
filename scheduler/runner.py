"""APScheduler integration for the periodic heartbeat sweep.

One interval job (HEARTBEAT_INTERVAL_MINUTES, default 15) that:
- runs the user heartbeat (tracked markets, strong signal) for every
  user found in the memory backend
- runs the community heartbeat (daily post, comment replies) once, under
  the agent's own memory
- sends a Slack summary if any step failed
"""

from __future__ import annotations

import logging
from typing import List, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from agents.base import AgentResult
from config import SchedulerConfig
from db.memory import MemoryBackend
from notifications.slack import SlackNotifier
from skill.app import ZigmaSkill
from skill.base import SkillContext

logger = logging.getLogger(__name__)

# Memory owner for the shared Moltbook account state
AGENT_USER_ID = "__zigma_agent__"


class SchedulerRunner:
    def __init__(self, skill: ZigmaSkill, backend: MemoryBackend,
                 config: Optional[SchedulerConfig] = None,
                 slack_notifier: Optional[SlackNotifier] = None) -> None:
        self.skill = skill
        self.backend = backend
        self.config = config or SchedulerConfig()
        self.slack_notifier = slack_notifier
        self.scheduler = BackgroundScheduler()
        self._running = False

    def context_for(self, user_id: str) -> SkillContext:
        notify = None
        if self.slack_notifier and self.slack_notifier.enabled:
            notify = self.slack_notifier.notifier_for(user_id)
        return SkillContext(user_id=user_id, memory=self.backend.for_user(user_id),
                            notify=notify)

    def run_sweep(self) -> List[AgentResult]:
        """One heartbeat over every known user, then the community steps."""
        results: List[AgentResult] = []
        user_ids = [u for u in self.backend.user_ids() if u != AGENT_USER_ID]

        for user_id in user_ids:
            try:
                results.extend(self.skill.run_user_heartbeat(self.context_for(user_id)))
            except Exception:
                logger.exception("Heartbeat failed for user=%s", user_id)

        try:
            results.extend(self.skill.run_community_heartbeat(self.context_for(AGENT_USER_ID)))
        except Exception:
            logger.exception("Community heartbeat failed")

        logger.info("Heartbeat sweep completed: %d users, %d steps",
                    len(user_ids), len(results))

        if self.slack_notifier:
            self.slack_notifier.notify_sweep(len(user_ids), results)
        return results

    def setup(self) -> None:
        """Configure the heartbeat job."""
        interval = self.config.heartbeat_interval_minutes
        self.scheduler.add_job(
            self.run_sweep,
            "interval",
            minutes=interval,
            id="zigma_heartbeat",
            name="Zigma Heartbeat",
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        logger.info("Scheduled heartbeat every %d minutes", interval)

    def start(self) -> None:
        """Start the scheduler."""
        if not self._running:
            self.setup()
            self.scheduler.start()
            self._running = True
            logger.info("Scheduler started.")

    def stop(self) -> None:
        """Stop the scheduler."""
        if self._running:
            self.scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Scheduler stopped.")

    @property
    def is_running(self) -> bool:
        return self._running

    def get_jobs(self) -> list:
        """Return list of scheduled jobs."""
        return self.scheduler.get_jobs()
