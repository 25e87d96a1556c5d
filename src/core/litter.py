"""Litter report models and parsing - Pure functions.

This module handles parsing change-feed rows from the trash_locations
table into typed LitterEvent objects. All functions are pure with no
side effects.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from src.core.geo import Coordinate


STATUS_ACTIVE = "active"
STATUS_PICKED_UP = "picked_up"

VALID_STATUSES = frozenset({STATUS_ACTIVE, STATUS_PICKED_UP})


@dataclass(frozen=True)
class LitterEvent:
    """Immutable litter report.

    Attributes:
        id: Row identifier from the trash_locations table
        location: Where the litter was reported
        reported_at: Report timestamp (UTC), None if the row had none
        status: 'active' or 'picked_up'
        description: Free-text description from the reporter (optional)
        created_by: Reporting user's id (optional)
        image_url: Photo of the litter (optional)
    """
    id: str
    location: Coordinate
    reported_at: datetime | None = None
    status: str = STATUS_ACTIVE
    description: str | None = None
    created_by: str | None = None
    image_url: str | None = None

    @property
    def is_active(self) -> bool:
        """Returns True if the litter still needs to be picked up."""
        return self.status == STATUS_ACTIVE

    def to_record(self) -> dict[str, Any]:
        """Return the row shape used by the mobile app and push payloads."""
        record: dict[str, Any] = {
            "id": self.id,
            "latitude": self.location.latitude,
            "longitude": self.location.longitude,
            "status": self.status,
        }
        if self.reported_at is not None:
            record["created_at"] = self.reported_at.isoformat()
        if self.description is not None:
            record["description"] = self.description
        if self.created_by is not None:
            record["created_by"] = self.created_by
        if self.image_url is not None:
            record["image_url"] = self.image_url
        return record


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Pure function. Naive timestamps are assumed to be UTC.

    Raises:
        ValueError: If value is not a valid ISO-8601 string
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        # Postgres emits a trailing Z for UTC
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_optional_timestamp(value: Any) -> datetime | None:
    """Parse a timestamp, treating unparseable values as unknown."""
    try:
        return parse_timestamp(value)
    except ValueError:
        return None


def parse_litter_record(record: dict[str, Any]) -> LitterEvent | None:
    """Parse a single trash_locations row into a LitterEvent.

    Pure function: takes raw dict, returns typed LitterEvent or None if the
    row is missing its id, coordinates or status, or carries values that
    cannot be converted. An unparseable created_at only leaves reported_at
    unset.

    Args:
        record: Row dict as delivered by the change feed

    Returns:
        LitterEvent or None if the row is malformed
    """
    try:
        event_id = record["id"]
        latitude = record["latitude"]
        longitude = record["longitude"]
        status = record["status"]

        if event_id is None or latitude is None or longitude is None:
            return None

        if status not in VALID_STATUSES:
            return None

        return LitterEvent(
            id=str(event_id),
            location=Coordinate(
                latitude=float(latitude),
                longitude=float(longitude),
            ),
            reported_at=_parse_optional_timestamp(record.get("created_at")),
            status=status,
            description=record.get("description"),
            created_by=record.get("created_by"),
            image_url=record.get("image_url"),
        )
    except (KeyError, TypeError, ValueError):
        return None


def extract_change_record(payload: dict[str, Any]) -> dict[str, Any]:
    """Unwrap a realtime change payload into its row.

    Pure function. Realtime INSERT payloads carry the inserted row under
    "new" (or "record" for database webhooks); plain rows pass through.

    Args:
        payload: Change payload or plain row

    Returns:
        The row dict
    """
    for key in ("new", "record"):
        row = payload.get(key)
        if isinstance(row, dict):
            return row
    return payload
