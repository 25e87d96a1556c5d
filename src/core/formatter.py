"""Message formatting - Pure functions.

This module formats litter reports into push notification messages.
All functions are pure with no side effects.
"""

from typing import Any

from src.core.litter import LitterEvent


NOTIFICATION_TITLE = "Trash Nearby!"

NOTIFICATION_BODY = (
    "There's trash that needs to be picked up nearby. "
    "Be an angel and help clean up!"
)

# Android notification channel registered by the mobile app
ANDROID_CHANNEL_ID = "default"


def format_event_summary(event: LitterEvent) -> str:
    """Format a one-line summary of a litter report for logs.

    Pure function.

    Args:
        event: Litter report to summarize

    Returns:
        One-line summary string
    """
    summary = (
        f"Litter {event.id} at "
        f"({event.location.latitude:.5f}, {event.location.longitude:.5f})"
    )
    if event.reported_at is not None:
        summary += f" reported {event.reported_at.strftime('%Y-%m-%d %H:%M:%S UTC')}"
    return summary


def format_push_message(
    event: LitterEvent | dict[str, Any],
    to: str | list[str],
) -> dict[str, Any]:
    """Format a litter report as an Expo push message.

    Pure function.

    Args:
        event: Litter report, either typed or as a raw row
        to: Recipient push token, or a list of tokens

    Returns:
        Expo push message dict
    """
    trash = event.to_record() if isinstance(event, LitterEvent) else dict(event)

    return {
        "to": to,
        "title": NOTIFICATION_TITLE,
        "body": NOTIFICATION_BODY,
        "data": {"trash": trash},
        "sound": "default",
        "channelId": ANDROID_CHANNEL_ID,
    }


def format_push_messages(
    event: LitterEvent | dict[str, Any],
    tokens: list[str],
) -> list[dict[str, Any]]:
    """Format one push message per recipient token.

    Pure function.
    """
    return [format_push_message(event, token) for token in tokens]
