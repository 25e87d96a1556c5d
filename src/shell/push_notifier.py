"""Push Notifier - Imperative Shell.

Adapts ExpoPushClient to the dispatcher's notify(event, token) callback.
The blocking HTTP call runs in a worker thread so notifications never
hold up the change feed.
"""

import asyncio
import logging

from src.core.formatter import format_event_summary
from src.core.litter import LitterEvent
from src.shell.expo_push_client import ExpoPushClient


logger = logging.getLogger(__name__)


class PushDeliveryError(Exception):
    """Raised when a push notification could not be delivered."""


class ExpoPushNotifier:
    """Async notify callback that sends one push per dispatch decision."""

    def __init__(
        self,
        client: ExpoPushClient | None = None,
        access_token: str | None = None,
    ) -> None:
        """Initialize notifier.

        Args:
            client: Expo push client (created if not provided)
            access_token: Expo access token (optional)
        """
        self.client = client or ExpoPushClient()
        self.access_token = access_token

    async def __call__(self, event: LitterEvent, push_token: str) -> None:
        """Send a "Trash Nearby!" notification to one device.

        Raises:
            PushDeliveryError: If the token is invalid or Expo rejects the push
        """
        responses = await asyncio.to_thread(
            self.client.send_litter_notification,
            event,
            [push_token],
            self.access_token,
        )

        if not responses:
            raise PushDeliveryError(f"Invalid push token: {push_token!r}")

        errors = [r.error or "unknown error" for r in responses if not r.success]
        if errors:
            raise PushDeliveryError("; ".join(errors))

        logger.info("Push sent for %s", format_event_summary(event))
