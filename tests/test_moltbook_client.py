"""Tests for the Moltbook client — disabled no-ops and degraded failures."""

from unittest.mock import MagicMock

import requests

from clients.moltbook_client import MoltbookClient
from config import MoltbookConfig


def make_client(api_key="mb-key"):
    client = MoltbookClient(MoltbookConfig(api_key=api_key))
    client.session = MagicMock()
    return client


def response(payload, ok=True, status=200):
    resp = MagicMock()
    resp.ok = ok
    resp.status_code = status
    resp.json.return_value = payload
    return resp


class TestDisabled:
    def test_every_call_is_noop(self):
        client = make_client(api_key="")
        assert not client.enabled
        assert client.create_post("t", "c") is False
        assert client.get_feed() == []
        assert client.get_post_comments("p1") == []
        assert client.reply_to_comment("p1", "c1", "hi") is False
        assert client.get_my_posts() == []
        client.session.get.assert_not_called()
        client.session.post.assert_not_called()


class TestPosting:
    def test_create_post(self):
        client = make_client()
        client.session.post.return_value = response({"post": {"id": "p1", "url": "u"}})
        assert client.create_post("Daily", "body") is True
        args, kwargs = client.session.post.call_args
        assert args[0] == "https://www.moltbook.com/api/v1/posts"
        assert kwargs["json"] == {"submolt": "general", "title": "Daily", "content": "body"}

    def test_create_post_rejected(self):
        client = make_client()
        client.session.post.return_value = response({}, ok=False, status=429)
        assert client.create_post("Daily", "body") is False

    def test_create_post_network_error(self):
        client = make_client()
        client.session.post.side_effect = requests.ConnectionError()
        assert client.create_post("Daily", "body") is False

    def test_reply_to_comment(self):
        client = make_client()
        client.session.post.return_value = response({})
        assert client.reply_to_comment("p1", "c1", "thanks") is True
        kwargs = client.session.post.call_args[1]
        assert kwargs["json"] == {"content": "thanks", "parent_id": "c1"}


class TestReading:
    def test_get_my_posts(self):
        client = make_client()
        client.session.get.return_value = response(
            {"agent": {"posts": [{"id": str(i)} for i in range(8)]}}
        )
        posts = client.get_my_posts(limit=5)
        assert [p["id"] for p in posts] == ["0", "1", "2", "3", "4"]
        assert client.session.get.call_args[0][0].endswith("/agents/me")

    def test_get_post_comments(self):
        client = make_client()
        client.session.get.return_value = response({"comments": [{"id": "c1"}]})
        assert client.get_post_comments("p1") == [{"id": "c1"}]

    def test_get_feed_failure_is_empty(self):
        client = make_client()
        client.session.get.side_effect = requests.ConnectionError()
        assert client.get_feed("general") == []

    def test_non_dict_body_is_empty(self):
        client = make_client()
        client.session.get.return_value = response(["unexpected"])
        assert client.get_post_comments("p1") == []
