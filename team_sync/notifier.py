"""Outbound webhook delivery."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, NamedTuple, Sequence

import aiohttp
import discord

logger = logging.getLogger(__name__)

WEBHOOK_URL_PATTERN = re.compile(
    r"https://(?:(?:ptb|canary)\.)?discord(?:app)?\.com/api/(?:v\d+/)?webhooks/\d{17,20}/[\w\.\-]{60,}"
)
WEBHOOK_TIMEOUT_SECONDS = 10


class WebhookResult(NamedTuple):
    success: bool
    message: str


def is_valid_webhook_url(url: str | None) -> bool:
    return bool(url) and WEBHOOK_URL_PATTERN.fullmatch(url.strip()) is not None


async def post_to_webhook(
    url: str | None,
    *,
    content: str | None = None,
    embeds: Sequence[discord.Embed] = (),
) -> WebhookResult:
    """Deliver one message to a Discord webhook. Failures are reported, never retried."""
    if not url:
        return WebhookResult(False, "Webhook URL is required.")
    if not is_valid_webhook_url(url):
        return WebhookResult(False, "That does not look like a Discord webhook URL.")

    kwargs: dict[str, Any] = {"embeds": list(embeds), "wait": True}
    if content:
        kwargs["content"] = content

    timeout = aiohttp.ClientTimeout(total=WEBHOOK_TIMEOUT_SECONDS)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            webhook = discord.Webhook.from_url(url.strip(), session=session)
            await webhook.send(**kwargs)
    except discord.NotFound:
        logger.error("Discord webhook no longer exists.")
        return WebhookResult(False, "The webhook no longer exists. Please configure a new one.")
    except discord.HTTPException as exc:
        logger.error("Discord webhook returned status %s: %s", exc.status, exc.text)
        return WebhookResult(False, f"Failed to post to Discord. Status: {exc.status}.")
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        logger.error("Failed to reach Discord webhook: %s", exc)
        return WebhookResult(
            False,
            "Failed to send request. Please check the webhook URL and your network connection.",
        )

    logger.info("Posted message with %s embed(s) to Discord webhook.", len(kwargs["embeds"]))
    return WebhookResult(True, "Successfully posted to Discord!")
