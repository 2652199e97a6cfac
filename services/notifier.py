"""Outbound Slack notifications.

The write path never waits on Slack: callers hand a prepared
:class:`SlackMessage` to :class:`NotificationDispatcher`, which sends it in a
background task and only logs failures.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional, Protocol, Set

import aiohttp

from config import Config
from core import get_logger
from core.exceptions import NotificationError
from services.slack_messages import SlackMessage

logger = get_logger(__name__)


class Notifier(Protocol):
    async def notify(self, message: SlackMessage) -> None:
        ...


class SlackNotifier:
    """Posts messages to ``chat.postMessage`` with a bot token."""

    def __init__(
        self,
        token: str,
        channel: str,
        api_url: str = "https://slack.com/api/chat.postMessage",
        timeout: float = 10.0,
    ) -> None:
        self.token = token
        self.channel = channel
        self.api_url = api_url
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def notify(self, message: SlackMessage) -> None:
        if not self.token:
            logger.info(f"No Slack token configured, skipping {message.kind} notification")
            return

        headers = {"Authorization": f"Bearer {self.token}"}
        try:
            async with self._get_session().post(
                self.api_url, json=message.payload(self.channel), headers=headers
            ) as response:
                body = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NotificationError(f"Slack request failed: {e}") from e

        if not body.get("ok"):
            raise NotificationError(f"Slack error: {body.get('error', 'unknown')}")
        logger.info(f"Posted {message.kind} to Slack channel {self.channel}")

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


class LoggingNotifier:
    """Stand-in used when notifications are disabled."""

    def __init__(self) -> None:
        self.sent: List[SlackMessage] = []

    async def notify(self, message: SlackMessage) -> None:
        self.sent.append(message)
        logger.info(f"[notifications disabled] {message.kind}: {message.text}")


def build_notifier(config: Config) -> Notifier:
    if not config.notifications_enabled:
        return LoggingNotifier()
    return SlackNotifier(
        token=config.slack_bot_token,
        channel=config.slack_channel_id,
        api_url=config.slack_api_url,
        timeout=config.slack_timeout,
    )


class NotificationDispatcher:
    """Fire-and-forget delivery on the running event loop."""

    def __init__(self, notifier: Notifier) -> None:
        self.notifier = notifier
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def dispatch(self, message: SlackMessage) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._deliver(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _deliver(self, message: SlackMessage) -> None:
        try:
            await self.notifier.notify(message)
        except Exception as e:
            logger.error(f"Failed to deliver {message.kind} notification: {e}", exc_info=True)

    async def drain(self) -> None:
        """Wait for in-flight sends."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        close = getattr(self.notifier, "close", None)
        if close is not None:
            await close()
