"""Tests for Slack delivery and message building."""

import asyncio
import logging
from dataclasses import replace
from datetime import date

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from core.exceptions import NotificationError
from database.models import Participant, Team
from services import slack_messages
from services.notifier import LoggingNotifier, NotificationDispatcher, SlackNotifier, build_notifier
from services.slack_messages import SlackMessage


class FailingNotifier:
    async def notify(self, message):
        raise NotificationError("channel_not_found")


class SlowNotifier:
    def __init__(self):
        self.release = asyncio.Event()
        self.delivered = []

    async def notify(self, message):
        await self.release.wait()
        self.delivered.append(message)


def _participant(**overrides):
    values = dict(
        id=1,
        username="Pam",
        slack_user_id=None,
        team_id=1,
        avatar_emoji="🌸",
        banked_steps=0,
        raffle_tickets=0,
        grand_prize_entry=False,
    )
    values.update(overrides)
    return Participant(**values)


def _team():
    return Team(id=1, name="The Cloud Walkers", color=None, icon="☁️")


def _logged(daily_total):
    today = date(2025, 12, 10)
    return slack_messages.activity_logged(
        _participant(), _team(), 4000, "Walking", False, daily_total, 20_000, today, today, 7000
    )


@pytest.mark.asyncio
async def test_dispatcher_logs_and_swallows_failures(caplog):
    dispatcher = NotificationDispatcher(FailingNotifier())

    with caplog.at_level(logging.ERROR):
        dispatcher.dispatch(SlackMessage(kind="weekly_qualified", text="hi"))
        await dispatcher.drain()

    assert dispatcher.pending == 0
    assert "Failed to deliver weekly_qualified" in caplog.text


@pytest.mark.asyncio
async def test_dispatch_does_not_wait_for_delivery():
    notifier = SlowNotifier()
    dispatcher = NotificationDispatcher(notifier)

    dispatcher.dispatch(SlackMessage(kind="activity_logged", text="hi"))
    await asyncio.sleep(0)

    assert dispatcher.pending == 1
    assert notifier.delivered == []

    notifier.release.set()
    await dispatcher.drain()
    assert len(notifier.delivered) == 1
    assert dispatcher.pending == 0


@pytest.mark.asyncio
async def test_slack_notifier_without_token_skips():
    notifier = SlackNotifier(token="", channel="C123", api_url="http://127.0.0.1:9/unused")
    await notifier.notify(SlackMessage(kind="daily_digest", text="hi"))
    await notifier.close()


@pytest.mark.asyncio
async def test_slack_notifier_posts_payload():
    received = []

    async def post_message(request):
        received.append((request.headers.get("Authorization"), await request.json()))
        return web.json_response({"ok": True})

    app = web.Application()
    app.router.add_post("/api/chat.postMessage", post_message)
    server = TestServer(app)
    await server.start_server()
    notifier = SlackNotifier(
        token="xoxb-test", channel="C123", api_url=str(server.make_url("/api/chat.postMessage"))
    )
    try:
        await notifier.notify(SlackMessage(kind="weekly_winner", text="Winner!", blocks=[slack_messages.divider()]))
    finally:
        await notifier.close()
        await server.close()

    auth, body = received[0]
    assert auth == "Bearer xoxb-test"
    assert body == {"channel": "C123", "text": "Winner!", "blocks": [{"type": "divider"}]}


@pytest.mark.asyncio
async def test_slack_notifier_raises_on_error_response():
    async def post_message(request):
        return web.json_response({"ok": False, "error": "not_in_channel"})

    app = web.Application()
    app.router.add_post("/api/chat.postMessage", post_message)
    server = TestServer(app)
    await server.start_server()
    notifier = SlackNotifier(
        token="xoxb-test", channel="C123", api_url=str(server.make_url("/api/chat.postMessage"))
    )
    try:
        with pytest.raises(NotificationError, match="not_in_channel"):
            await notifier.notify(SlackMessage(kind="grand_winner", text="Winner!"))
    finally:
        await notifier.close()
        await server.close()


def test_build_notifier_respects_toggle(config):
    assert isinstance(build_notifier(config), LoggingNotifier)
    enabled = build_notifier(replace(config, notifications_enabled=True, slack_bot_token="xoxb-1"))
    assert isinstance(enabled, SlackNotifier)
    assert enabled.token == "xoxb-1"


def test_fallback_text_is_truncated():
    payload = SlackMessage(kind="daily_digest", text="x" * 500).payload("C1")
    assert len(payload["text"]) == 300


def test_activity_logged_callouts():
    assert "BEAST MODE" in _logged(16_000).blocks[0]["text"]["text"]
    assert "10K Club" in _logged(12_000).blocks[0]["text"]["text"]
    assert "Daily goal crushed" in _logged(7_500).blocks[0]["text"]["text"]
    plain = _logged(3_000).blocks[0]["text"]["text"]
    assert "*4,000 steps*!" in plain
    assert plain.endswith("steps*!")


def test_backdated_activity_mentions_date():
    message = slack_messages.activity_logged(
        _participant(), None, 2000, "Running", False, 2000, 2000, date(2025, 12, 8), date(2025, 12, 10), 7000
    )
    assert "logged for 2025-12-08" in message.text


def test_mention_uses_slack_id_when_known():
    assert _participant(slack_user_id="U42").mention == "<@U42>"
    assert "Pam" in _participant().mention
