"""Observer state model - Pure data structures.

An observer is the user/session being evaluated as a candidate
notification recipient. ObserverState is an immutable snapshot; the
mutable session holder lives in the shell (src/shell/observer_session.py).
"""

from dataclasses import dataclass, replace

from src.core.geo import Coordinate


# Default notification radius used by the mobile app
DEFAULT_RADIUS_MILES = 0.2


@dataclass(frozen=True)
class ObserverState:
    """Immutable snapshot of an observer's notification-relevant state.

    Attributes:
        location: Current location, None until the first fix
        notifications_enabled: User-level notification toggle
        radius_miles: Notification radius in statute miles
        is_authenticated: Whether the session has a signed-in user
        push_token: Expo push token, None until registered
    """
    location: Coordinate | None = None
    notifications_enabled: bool = True
    radius_miles: float = DEFAULT_RADIUS_MILES
    is_authenticated: bool = False
    push_token: str | None = None

    def with_location(self, latitude: float, longitude: float) -> "ObserverState":
        """Return a copy with an updated location."""
        return replace(self, location=Coordinate(latitude=latitude, longitude=longitude))

    def with_notifications(self, enabled: bool) -> "ObserverState":
        """Return a copy with notifications toggled."""
        return replace(self, notifications_enabled=enabled)

    def with_radius(self, radius_miles: float) -> "ObserverState":
        """Return a copy with a new notification radius."""
        return replace(self, radius_miles=radius_miles)

    def with_auth(self, authenticated: bool) -> "ObserverState":
        """Return a copy with a new authentication state."""
        return replace(self, is_authenticated=authenticated)

    def with_push_token(self, push_token: str | None) -> "ObserverState":
        """Return a copy with a new push token."""
        return replace(self, push_token=push_token)
