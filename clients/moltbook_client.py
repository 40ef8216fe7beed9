"""Moltbook community API client.

Moltbook API: https://www.moltbook.com/api/v1 — bearer token from MOLTBOOK_API_KEY
  - POST /posts — publish a post to a submolt
  - GET /posts — community feed
  - GET /posts/{id}/comments — comments on a post
  - POST /posts/{id}/comments — reply to a comment
  - GET /agents/me — the agent profile, including its recent posts

The community integration is optional: without an API key every call is a
no-op returning False or an empty list, and request failures degrade the
same way after being logged.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from config import MoltbookConfig

logger = logging.getLogger(__name__)


class MoltbookClient:
    def __init__(self, config: MoltbookConfig) -> None:
        self.config = config
        self.base_url = config.base_url
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if config.api_key:
            self.session.headers["Authorization"] = f"Bearer {config.api_key}"

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def create_post(self, title: str, content: str,
                    submolt: Optional[str] = None) -> bool:
        """Publish a post. Returns True if Moltbook accepted it."""
        if not self.enabled:
            logger.warning("MOLTBOOK_API_KEY not set, skipping post")
            return False

        body = {
            "submolt": submolt or self.config.submolt,
            "title": title,
            "content": content,
        }
        try:
            resp = self.session.post(f"{self.base_url}/posts", json=body, timeout=30)
            if not resp.ok:
                logger.error("Moltbook post failed: status=%d error=%s",
                             resp.status_code, resp.text)
                return False
            post = resp.json().get("post") or {}
            logger.info("Posted to Moltbook: post_id=%s url=%s",
                        post.get("id"), post.get("url"))
            return True
        except (requests.RequestException, ValueError):
            logger.exception("Moltbook post error")
            return False

    def get_feed(self, submolt: Optional[str] = None,
                 limit: int = 25) -> List[Dict[str, Any]]:
        if not self.enabled:
            return []
        params: Dict[str, Any] = {"limit": limit}
        if submolt:
            params["submolt"] = submolt
        data = self._get("/posts", params=params)
        return data.get("posts") or []

    def get_post_comments(self, post_id: str) -> List[Dict[str, Any]]:
        if not self.enabled:
            return []
        data = self._get(f"/posts/{post_id}/comments")
        return data.get("comments") or []

    def reply_to_comment(self, post_id: str, comment_id: str, content: str) -> bool:
        if not self.enabled:
            return False
        try:
            resp = self.session.post(
                f"{self.base_url}/posts/{post_id}/comments",
                json={"content": content, "parent_id": comment_id},
                timeout=30,
            )
            if not resp.ok:
                logger.error("Failed to reply to comment: status=%d", resp.status_code)
                return False
            logger.info("Replied to comment: post_id=%s comment_id=%s", post_id, comment_id)
            return True
        except requests.RequestException:
            logger.exception("Reply error")
            return False

    def get_my_posts(self, limit: int = 10) -> List[Dict[str, Any]]:
        if not self.enabled:
            return []
        data = self._get("/agents/me")
        agent = data.get("agent") or {}
        return (agent.get("posts") or [])[:limit]

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET a Moltbook endpoint, returning {} on any failure."""
        try:
            resp = self.session.get(f"{self.base_url}{path}", params=params, timeout=30)
            if not resp.ok:
                return {}
            data = resp.json()
            return data if isinstance(data, dict) else {}
        except (requests.RequestException, ValueError):
            logger.exception("Moltbook request failed: %s", path)
            return {}
