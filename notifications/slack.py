"""Slack webhook notifications for heartbeat alerts and sweep summaries.

Standalone deployments have no chat host to push to, so the scheduler
hands heartbeat agents a notify callable that forwards alert markdown to
a Slack channel. A sweep summary is posted when any step failed.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, List, Optional, Sequence

import requests

from agents.base import AgentResult
from agents.registry import AgentRegistry

logger = logging.getLogger(__name__)

# Emoji map for heartbeat steps
_AGENT_EMOJI = {
    "tracked_markets": ":bell:",
    "strong_signal": ":fire:",
    "daily_post": ":newspaper:",
    "comment_replies": ":speech_balloon:",
}

_MAX_TEXT = 2900


class SlackNotifier:
    """Sends alert text and sweep summaries to Slack via Incoming Webhook."""

    def __init__(self, webhook_url: str) -> None:
        self.webhook_url = webhook_url
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def notify(self, text: str, user_id: Optional[str] = None) -> bool:
        """Post one alert. Returns True if Slack accepted it."""
        if not self.enabled:
            return False
        return self._send(self._build_alert(text, user_id))

    def notifier_for(self, user_id: str) -> Callable[[str], None]:
        """A notify capability that tags every alert with user_id."""
        def _notify(text: str) -> None:
            self.notify(text, user_id)
        return _notify

    def notify_sweep(self, user_count: int, results: Sequence[AgentResult]) -> bool:
        """Post a sweep summary, only when at least one step failed."""
        if not self.enabled:
            return False
        if not AgentRegistry.failures(results):
            return False
        return self._send(self._build_summary(user_count, results))

    def _send(self, blocks: list) -> bool:
        try:
            resp = self.session.post(
                self.webhook_url,
                data=json.dumps({"blocks": blocks}),
                timeout=10,
            )
            if resp.status_code != 200:
                logger.warning("Slack webhook returned %d: %s", resp.status_code, resp.text)
                return False
            return True
        except requests.RequestException:
            logger.exception("Failed to send Slack notification")
            return False

    def _build_alert(self, text: str, user_id: Optional[str]) -> list:
        # Slack mrkdwn uses single asterisks for bold
        body = text.replace("**", "*")
        if len(body) > _MAX_TEXT:
            body = body[:_MAX_TEXT - 3] + "..."

        blocks: list = [{
            "type": "section",
            "text": {"type": "mrkdwn", "text": body},
        }]
        if user_id:
            blocks.append({
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": f":bust_in_silhouette: {user_id}"}],
            })
        return blocks

    def _build_summary(self, user_count: int, results: Sequence[AgentResult]) -> list:
        failed = AgentRegistry.failures(results)
        lines: List[str] = [
            f":busts_in_silhouette: *Users:* {user_count}",
            f":white_check_mark: *Steps OK:* {len(results) - len(failed)}",
            f":x: *Steps failed:* {len(failed)}",
        ]

        blocks: list = [
            {
                "type": "header",
                "text": {"type": "plain_text", "text": "Zigma Heartbeat Sweep", "emoji": True},
            },
            {"type": "section", "text": {"type": "mrkdwn", "text": "\n".join(lines)}},
            {"type": "divider"},
        ]

        # Show up to 5 failures to keep message readable
        for result in failed[:5]:
            emoji = _AGENT_EMOJI.get(result.agent_name, ":robot_face:")
            blocks.append({
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": f"{emoji} *{result.agent_name}*: ```{(result.error or '')[:500]}```",
                },
            })

        if len(failed) > 5:
            blocks.append({
                "type": "context",
                "elements": [{
                    "type": "mrkdwn",
                    "text": f"_...and {len(failed) - 5} more failures_",
                }],
            })
        return blocks
