"""Expo Push Client - Imperative Shell.

This module handles HTTP communication with the Expo push notification
service. All I/O is contained here; message formatting is in the core
module.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any

import requests

from src.core.config import MAX_PUSH_CHUNK_SIZE
from src.core.formatter import format_push_messages
from src.core.litter import LitterEvent


logger = logging.getLogger(__name__)


EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"

# Default timeout for push requests (seconds)
DEFAULT_TIMEOUT = 10

_EXPO_TOKEN_PATTERN = re.compile(r"^(ExponentPushToken|ExpoPushToken)\[.+\]$")
_UUID_TOKEN_PATTERN = re.compile(
    r"^[a-z\d]{8}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{12}$",
    re.IGNORECASE,
)


def is_expo_push_token(token: Any) -> bool:
    """Check if a value looks like an Expo push token."""
    if not isinstance(token, str):
        return False
    return bool(_EXPO_TOKEN_PATTERN.match(token) or _UUID_TOKEN_PATTERN.match(token))


def chunk_messages(
    messages: list[dict[str, Any]],
    chunk_size: int = MAX_PUSH_CHUNK_SIZE,
) -> list[list[dict[str, Any]]]:
    """Split messages into request-sized chunks, preserving order."""
    size = max(1, min(chunk_size, MAX_PUSH_CHUNK_SIZE))
    return [messages[i:i + size] for i in range(0, len(messages), size)]


@dataclass
class PushTicket:
    """Per-message result returned by the Expo push service.

    Attributes:
        token: Recipient push token
        status: 'ok' or 'error'
        ticket_id: Receipt id for 'ok' tickets
        message: Error message for 'error' tickets
        error: Error code (e.g. DeviceNotRegistered) for 'error' tickets
    """
    token: str | None
    status: str
    ticket_id: str | None = None
    message: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Returns True if Expo accepted the message."""
        return self.status == "ok"


@dataclass
class PushResponse:
    """Response from one Expo push request.

    Attributes:
        success: Whether every message in the request was accepted
        status_code: HTTP status code (0 if the request never completed)
        tickets: Per-message tickets, in message order
        error: Error message if failed
    """
    success: bool
    status_code: int
    tickets: list[PushTicket] = field(default_factory=list)
    error: str | None = None


class ExpoPushClient:
    """Client for sending push notifications through Expo.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        push_url: str = EXPO_PUSH_URL,
        timeout: int = DEFAULT_TIMEOUT,
        chunk_size: int = MAX_PUSH_CHUNK_SIZE,
    ) -> None:
        """Initialize Expo push client.

        Args:
            push_url: Expo push endpoint
            timeout: Request timeout in seconds
            chunk_size: Maximum messages per request
        """
        self.push_url = push_url
        self.timeout = timeout
        self.chunk_size = chunk_size

    def _build_headers(self, access_token: str | None) -> dict[str, str]:
        """Build request headers, adding the bearer token if configured."""
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _parse_tickets(
        self,
        messages: list[dict[str, Any]],
        data: Any,
    ) -> list[PushTicket]:
        """Pair Expo's ticket list with the messages that produced it."""
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            return []

        tickets = []
        for message, item in zip(messages, data):
            details = item.get("details") or {}
            tickets.append(PushTicket(
                token=message.get("to"),
                status=item.get("status", "error"),
                ticket_id=item.get("id"),
                message=item.get("message"),
                error=details.get("error"),
            ))
        return tickets

    def send_messages(
        self,
        messages: list[dict[str, Any]],
        access_token: str | None = None,
    ) -> PushResponse:
        """Send one batch of push messages.

        This method performs HTTP I/O. Callers are responsible for keeping
        the batch within Expo's per-request limit (see send_in_chunks).

        Args:
            messages: Expo push messages (from formatter)
            access_token: Expo access token (optional)

        Returns:
            PushResponse indicating success or failure
        """
        logger.info("Sending %d push message(s) to Expo", len(messages))

        try:
            response = requests.post(
                self.push_url,
                json=messages,
                timeout=self.timeout,
                headers=self._build_headers(access_token),
            )

            if response.status_code != 200:
                error_text = response.text
                logger.warning(
                    "Expo push returned non-200: %d - %s",
                    response.status_code,
                    error_text,
                )
                return PushResponse(
                    success=False,
                    status_code=response.status_code,
                    error=error_text,
                )

            body = response.json()
            if not isinstance(body, dict):
                body = {"data": body}
            if body.get("errors"):
                error_text = "; ".join(
                    str(e.get("message", e)) for e in body["errors"]
                )
                logger.warning("Expo push request rejected: %s", error_text)
                return PushResponse(
                    success=False,
                    status_code=response.status_code,
                    error=error_text,
                )

            tickets = self._parse_tickets(messages, body.get("data"))
            failed = [t for t in tickets if not t.ok]

            for ticket in failed:
                logger.warning(
                    "Expo rejected push to %s: %s (%s)",
                    ticket.token,
                    ticket.message,
                    ticket.error,
                )

            if failed:
                return PushResponse(
                    success=False,
                    status_code=response.status_code,
                    tickets=tickets,
                    error=f"{len(failed)} of {len(tickets)} messages rejected",
                )

            logger.info("Push messages accepted by Expo")
            return PushResponse(
                success=True,
                status_code=response.status_code,
                tickets=tickets,
            )

        except requests.Timeout:
            logger.error("Expo push request timed out")
            return PushResponse(
                success=False,
                status_code=0,
                error="Request timed out",
            )
        except requests.RequestException as e:
            logger.error("Expo push request failed: %s", str(e))
            return PushResponse(
                success=False,
                status_code=0,
                error=str(e),
            )

    def send_in_chunks(
        self,
        messages: list[dict[str, Any]],
        access_token: str | None = None,
    ) -> list[PushResponse]:
        """Send messages in request-sized chunks.

        Args:
            messages: Expo push messages
            access_token: Expo access token (optional)

        Returns:
            List of responses, one per chunk
        """
        responses = []
        for chunk in chunk_messages(messages, self.chunk_size):
            responses.append(self.send_messages(chunk, access_token))
        return responses

    def send_litter_notification(
        self,
        event: LitterEvent | dict[str, Any],
        tokens: list[str],
        access_token: str | None = None,
    ) -> list[PushResponse]:
        """Notify a set of devices about a litter report.

        Tokens that are not Expo push tokens are skipped with a warning.

        Args:
            event: Litter report, typed or as a raw row
            tokens: Recipient push tokens
            access_token: Expo access token (optional)

        Returns:
            List of responses, one per chunk (empty if no valid tokens)
        """
        valid_tokens = []
        for token in tokens:
            if is_expo_push_token(token):
                valid_tokens.append(token)
            else:
                logger.warning("Skipping invalid push token: %r", token)

        if not valid_tokens:
            return []

        messages = format_push_messages(event, valid_tokens)
        return self.send_in_chunks(messages, access_token)
