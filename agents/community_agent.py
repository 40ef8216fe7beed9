"""Community agents — Moltbook daily post and comment replies.

DailyPostAgent: posts the top signals once per local calendar day; the
day is only recorded when Moltbook accepts the post, so a failed post is
retried on the next heartbeat.

CommentReplyAgent: replies once to each new comment on the agent's
recent posts, remembering replied comment ids.

Both skip when no Moltbook API key is configured.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, List

from .base import AgentResult, BaseAgent
from db.memory import LAST_DAILY_POST_KEY, REPLIED_COMMENTS_KEY
from skill.formatters import comment_reply, format_daily_post


class DailyPostAgent(BaseAgent):
    def __init__(self, config: Any = None,
                 today: Callable[[], date] = date.today) -> None:
        super().__init__(name="daily_post", config=config)
        self._today = today

    def execute(self, context: Dict[str, Any]) -> AgentResult:
        moltbook = context.get("moltbook_client")
        if not moltbook or not moltbook.enabled:
            return AgentResult.skipped(self.name, "Moltbook not configured")

        ctx = context["skill_context"]
        limits = context["config"].limits
        today = self._today()
        if ctx.memory.get(LAST_DAILY_POST_KEY) == today.isoformat():
            return AgentResult(
                agent_name=self.name,
                summary="Already posted today.",
            )

        signals = context["oracle_client"].get_signals(
            limit=limits.daily_post_signals,
            min_edge=limits.default_min_edge / 100,
        )
        if not signals:
            return AgentResult(
                agent_name=self.name,
                summary="No signals to post.",
            )

        posted = moltbook.create_post(
            title=f"Zigma Daily Alpha - {today.strftime('%m/%d/%Y')}",
            content=format_daily_post(signals),
        )
        if posted:
            ctx.memory.set(LAST_DAILY_POST_KEY, today.isoformat())

        return AgentResult(
            agent_name=self.name,
            items_processed=1 if posted else 0,
            summary="Posted daily alpha." if posted else "Daily post rejected.",
            data={"posted": posted, "signals": len(signals)},
        )


class CommentReplyAgent(BaseAgent):
    def __init__(self, config: Any = None, max_posts: int = 5) -> None:
        super().__init__(name="comment_replies", config=config)
        self.max_posts = max_posts

    def execute(self, context: Dict[str, Any]) -> AgentResult:
        moltbook = context.get("moltbook_client")
        if not moltbook or not moltbook.enabled:
            return AgentResult.skipped(self.name, "Moltbook not configured")

        ctx = context["skill_context"]
        replied: List[str] = ctx.memory.get(REPLIED_COMMENTS_KEY) or []
        new_replies = 0

        for post in moltbook.get_my_posts(self.max_posts):
            post_id = post.get("id")
            if not post_id:
                continue
            for comment in moltbook.get_post_comments(post_id):
                comment_id = comment.get("id")
                if not comment_id or comment_id in replied:
                    continue
                reply = comment_reply(comment.get("author", ""), comment.get("content", ""))
                if moltbook.reply_to_comment(post_id, comment_id, reply):
                    replied.append(comment_id)
                    ctx.memory.set(REPLIED_COMMENTS_KEY, replied)
                    new_replies += 1

        return AgentResult(
            agent_name=self.name,
            items_processed=new_replies,
            summary=f"Replied to {new_replies} comments.",
        )
