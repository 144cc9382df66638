"""Privileged operations: admin claims and webhook configuration."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from . import storage
from .config import get_discord_webhook_url, get_super_admin_ids, set_discord_webhook_url as store_webhook_url
from .messages import build_test_embed
from .notifier import is_valid_webhook_url, post_to_webhook

logger = logging.getLogger(__name__)


class AdminOperationError(Exception):
    """Raised by privileged operations; ``code`` names the failure kind."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def is_super_admin(user_id: str | None) -> bool:
    return bool(user_id) and user_id in get_super_admin_ids()


def is_admin(user_id: str | None) -> bool:
    if not user_id:
        return False
    return is_super_admin(user_id) or storage.has_admin_claim(user_id)


def _require_admin(caller_id: str | None) -> str:
    if not caller_id:
        raise AdminOperationError("unauthenticated", "You must be logged in to perform this action.")
    if not is_admin(caller_id):
        raise AdminOperationError("permission-denied", "You must be an administrator to perform this action.")
    return caller_id


def set_admin_claim(caller_id: str | None, data: Mapping[str, Any]) -> dict[str, str]:
    if not caller_id:
        raise AdminOperationError("unauthenticated", "You must be logged in to perform this action.")

    target_id = data.get("uid")
    if is_super_admin(caller_id) and target_id == caller_id:
        storage.grant_admin(caller_id, caller_id)
        logger.info("Super admin %s set admin claim on themselves.", caller_id)
        return {"message": f"Success! Super Admin {caller_id} has been made an admin."}

    if not isinstance(target_id, str) or not target_id.strip():
        raise AdminOperationError("invalid-argument", "The function must be called with a 'uid' argument.")

    if not is_admin(caller_id):
        raise AdminOperationError("permission-denied", "You do not have permission to perform this action.")

    try:
        storage.grant_admin(target_id.strip(), caller_id)
    except OSError as exc:
        logger.error("Error setting admin claim for %s: %s", target_id, exc)
        raise AdminOperationError(
            "internal", "An unexpected error occurred while setting the admin claim."
        ) from exc

    logger.info("Admin claim set for user %s by admin %s.", target_id, caller_id)
    return {"message": f"Success! User {target_id.strip()} has been made an admin."}


def set_discord_webhook_url(caller_id: str | None, data: Mapping[str, Any]) -> dict[str, Any]:
    _require_admin(caller_id)
    url = data.get("url")
    if not isinstance(url, str) or not url.strip():
        raise AdminOperationError("invalid-argument", "The function must be called with a 'url' argument.")
    if not is_valid_webhook_url(url):
        return {"success": False, "message": "That does not look like a Discord webhook URL."}

    try:
        store_webhook_url(url.strip())
    except OSError as exc:
        logger.error("Could not store webhook URL: %s", exc)
        raise AdminOperationError("internal", "Failed to save the webhook URL.") from exc
    logger.info("Discord webhook URL updated by %s.", caller_id)
    return {"success": True, "message": "Webhook URL saved."}


async def test_discord_webhook(caller_id: str | None) -> dict[str, Any]:
    _require_admin(caller_id)
    url = get_discord_webhook_url()
    if not url:
        raise AdminOperationError(
            "failed-precondition", "Discord webhook URL is not configured in the backend."
        )

    result = await post_to_webhook(url, embeds=[build_test_embed()])
    if not result.success:
        raise AdminOperationError("internal", f"Failed to send test message to Discord. {result.message}")
    return {"success": True, "message": "Test message sent successfully!"}
