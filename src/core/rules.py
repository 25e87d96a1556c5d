"""Proximity notification rules - Pure functions.

This module decides whether a newly reported litter location should
trigger a push notification for an observer. All functions are pure with
no side effects; the actual notification is sent by the dispatcher.
"""

from dataclasses import dataclass

from src.core.geo import calculate_distance, miles_to_meters
from src.core.litter import LitterEvent
from src.core.observer import ObserverState


ACTION_DISPATCH = "dispatch"
ACTION_SUPPRESS = "suppress"


class SuppressReason:
    """Reason codes attached to suppress decisions."""
    NOTIFICATIONS_DISABLED = "notifications_disabled"
    NOT_AUTHENTICATED = "not_authenticated"
    NO_OBSERVER_LOCATION = "no_observer_location"
    NO_PUSH_TOKEN = "no_push_token"
    OUT_OF_RADIUS = "out_of_radius"
    MALFORMED_EVENT = "malformed_event"
    OBSERVER_UNAVAILABLE = "observer_unavailable"


@dataclass(frozen=True)
class NotificationDecision:
    """Result of evaluating one (observer, event) pair.

    Attributes:
        action: 'dispatch' or 'suppress'
        event: The event evaluated (None for malformed feed records)
        reason: Suppress reason code (None when dispatching)
        push_token: Recipient token (set only when dispatching)
        distance_meters: Observer-to-event distance, if it was computed
    """
    action: str
    event: LitterEvent | None
    reason: str | None = None
    push_token: str | None = None
    distance_meters: float | None = None

    @property
    def should_dispatch(self) -> bool:
        """Returns True if a notification should be sent."""
        return self.action == ACTION_DISPATCH


def suppress(
    event: LitterEvent | None,
    reason: str,
    distance_meters: float | None = None,
) -> NotificationDecision:
    """Build a suppress decision.

    Pure function.
    """
    return NotificationDecision(
        action=ACTION_SUPPRESS,
        event=event,
        reason=reason,
        distance_meters=distance_meters,
    )


def check_gates(observer: ObserverState) -> str | None:
    """Check the non-geographic conditions for notifying an observer.

    Pure function. Gates are checked in a fixed order and the first one
    that fails wins.

    Returns:
        Suppress reason for the first failing gate, or None if all pass
    """
    if not observer.notifications_enabled:
        return SuppressReason.NOTIFICATIONS_DISABLED

    if not observer.is_authenticated:
        return SuppressReason.NOT_AUTHENTICATED

    if observer.location is None:
        return SuppressReason.NO_OBSERVER_LOCATION

    if not observer.push_token:
        return SuppressReason.NO_PUSH_TOKEN

    return None


def evaluate_proximity_rule(
    observer: ObserverState,
    event: LitterEvent,
) -> NotificationDecision:
    """Decide whether an observer should be notified about a litter report.

    Pure function.

    The observer is notified only if notifications are enabled, the session
    is authenticated, both a location and a push token are known, and the
    event lies within the observer's radius (closed boundary). A radius of
    zero or less never notifies.

    Args:
        observer: Observer snapshot taken at evaluation time
        event: Newly reported litter

    Returns:
        NotificationDecision to dispatch or suppress
    """
    reason = check_gates(observer)
    if reason is not None:
        return suppress(event, reason)

    if observer.radius_miles <= 0:
        return suppress(event, SuppressReason.OUT_OF_RADIUS)

    distance_meters = calculate_distance(observer.location, event.location)
    radius_meters = miles_to_meters(observer.radius_miles)

    if distance_meters <= radius_meters:
        return NotificationDecision(
            action=ACTION_DISPATCH,
            event=event,
            push_token=observer.push_token,
            distance_meters=distance_meters,
        )

    return suppress(event, SuppressReason.OUT_OF_RADIUS, distance_meters)
