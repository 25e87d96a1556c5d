"""Entry Points.

This module provides:
- send_push_notification: HTTP Cloud Function that pushes a "Trash Nearby!"
  notification for one litter report to a list of device tokens
- run_listener: long-running loop that follows the litter change feed and
  notifies the local observer about reports within their radius

Both are thin wrappers that load configuration and hand off to the
dispatcher and shell clients.
"""

import asyncio
import json
import logging
import os
from dataclasses import asdict
from typing import Any

import functions_framework
from flask import Request

from src.core.config import Config, validate_config
from src.core.litter import parse_litter_record
from src.dispatcher import ChangeFeedDispatcher, DispatchResult
from src.shell.config_loader import load_config, load_config_from_env
from src.shell.expo_push_client import ExpoPushClient
from src.shell.observer_session import ObserverSession
from src.shell.push_notifier import ExpoPushNotifier
from src.shell.supabase_feed_client import SupabaseFeedClient


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _get_config() -> Config:
    """Load configuration from file or environment."""
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        return load_config(config_path)
    elif os.environ.get("SUPABASE_URL"):
        # Simple env-based config
        return load_config_from_env()
    else:
        # Try default config path
        return load_config()


@functions_framework.http
def send_push_notification(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point.

    Expects a JSON body {"trash": <litter row>, "userTokens": [<token>, ...]}
    and sends one push message per token through Expo.

    Args:
        request: Flask request object

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    body = request.get_json(silent=True) or {}
    trash = body.get("trash") if isinstance(body, dict) else None
    tokens = body.get("userTokens") if isinstance(body, dict) else None

    if not isinstance(trash, dict) or not isinstance(tokens, list) or not tokens:
        return {
            "error": "Invalid request. Required fields: trash (object) and userTokens (array)",
        }, 400

    event = parse_litter_record(trash)
    if event is None:
        return {
            "error": "Invalid trash record. Required fields: id, latitude, longitude, status",
        }, 400

    try:
        config = _get_config()
        client = ExpoPushClient(
            timeout=config.push.timeout_seconds,
            chunk_size=config.push.chunk_size,
        )

        responses = client.send_litter_notification(
            event,
            tokens,
            access_token=config.push.access_token,
        )

        if not responses:
            return {"error": "No valid Expo push tokens in userTokens"}, 400

        result = [asdict(ticket) for r in responses for ticket in r.tickets]
        errors = [r.error for r in responses if not r.success]

        if errors:
            logger.error("Push delivery failed for litter %s: %s", event.id, "; ".join(errors))
            return {
                "error": f"Failed to send push notification: {'; '.join(errors)}",
                "result": result,
            }, 500

        logger.info("Sent %d push notification(s) for litter %s", len(result), event.id)
        return {"success": True, "result": result}, 200

    except Exception as e:
        logger.exception("Unexpected error sending push notification")
        return {"error": str(e)}, 500


async def run_listener(
    config: Config,
    session: ObserverSession | None = None,
    feed_client: SupabaseFeedClient | None = None,
    notifier: ExpoPushNotifier | None = None,
    max_polls: int | None = None,
) -> DispatchResult:
    """Follow the litter change feed and notify the observer.

    Args:
        config: Application configuration
        session: Observer session (created from config if not provided)
        feed_client: Change feed client (created if not provided)
        notifier: Push notifier (created if not provided)
        max_polls: Stop after this many feed polls (None runs until cancelled)

    Returns:
        DispatchResult with totals for the run
    """
    session = session or ObserverSession.from_defaults(config.observer)
    feed_client = feed_client or SupabaseFeedClient(config.supabase)
    notifier = notifier or ExpoPushNotifier(
        ExpoPushClient(
            timeout=config.push.timeout_seconds,
            chunk_size=config.push.chunk_size,
        ),
        access_token=config.push.access_token,
    )

    dispatcher = ChangeFeedDispatcher(session.snapshot, notifier)
    return await dispatcher.run(feed_client.stream(max_polls=max_polls))


# For local testing
if __name__ == "__main__":
    import sys

    print("Listening for new litter reports...")

    config = _get_config()
    validation = validate_config(config)

    for warning in validation.warnings:
        print(f"Warning: {warning.field}: {warning.message}")

    if not validation.valid:
        for error in validation.critical_errors:
            print(f"Error: {error.field}: {error.message}")
        sys.exit(1)

    try:
        result = asyncio.run(run_listener(config))
    except KeyboardInterrupt:
        sys.exit(0)

    print(json.dumps(asdict(result), indent=2))
