#!/usr/bin/env python3
"""
Notifications: run summaries to Slack/Discord webhooks.

No notifications are sent unless a webhook is configured. Delivery is
best-effort; failures are logged and never affect the run.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Optional

import aiohttp

logger = logging.getLogger(__name__)


@dataclass
class NotificationConfig:
    slack_webhook_url: str = field(default_factory=lambda: os.getenv("SLACK_WEBHOOK_URL", ""))
    discord_webhook_url: str = field(default_factory=lambda: os.getenv("DISCORD_WEBHOOK_URL", ""))
    timeout_seconds: float = field(default_factory=lambda: float(os.getenv("NOTIFY_TIMEOUT_SECONDS", "12")))


class NotificationManager:
    def __init__(self, config: Optional[NotificationConfig] = None):
        self.config = config or NotificationConfig()

    def enabled(self) -> bool:
        return bool(self.config.slack_webhook_url or self.config.discord_webhook_url)

    async def _post_json(self, url: str, payload: dict) -> bool:
        if not url:
            return False
        try:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, json=payload) as resp:
                    if 200 <= resp.status < 300:
                        return True
                    text = await resp.text()
                    logger.warning(f"Webhook failed ({resp.status}): {text[:200]}")
                    return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Webhook error: {e}")
            return False

    async def notify_summary(self, text: str) -> bool:
        """
        Deliver a run summary. Always logged; posted to each configured webhook.

        Returns:
            True if at least one webhook accepted the summary
        """
        logger.info(f"Run summary:\n{text}")
        if not self.enabled():
            return False

        # Slack takes `text`, Discord takes `content` (max 2000 chars)
        results = await asyncio.gather(
            self._post_json(self.config.slack_webhook_url, {"text": text}),
            self._post_json(self.config.discord_webhook_url, {"content": text[:2000]}),
            return_exceptions=True,
        )
        return any(r is True for r in results)
