import asyncio

import pytest

from team_sync import notifier

VALID = "https://discord.com/api/webhooks/123456789012345678/" + "c" * 68


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        (VALID, True),
        (VALID.replace("discord.com", "discordapp.com"), True),
        (VALID.replace("https://", "https://canary."), True),
        ("https://example.com/api/webhooks/1/abc", False),
        ("http://discord.com/api/webhooks/123456789012345678/" + "c" * 68, False),
        ("", False),
        (None, False),
    ],
)
def test_is_valid_webhook_url(url, expected: bool) -> None:
    assert notifier.is_valid_webhook_url(url) is expected


def test_post_rejects_invalid_url_without_network() -> None:
    result = asyncio.run(notifier.post_to_webhook("https://example.com/hook", content="hi"))
    assert result.success is False

    missing = asyncio.run(notifier.post_to_webhook(None, content="hi"))
    assert missing == notifier.WebhookResult(False, "Webhook URL is required.")
