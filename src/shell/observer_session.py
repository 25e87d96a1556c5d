"""Observer Session - Imperative Shell.

This module holds the mutable state of the local user session (location,
notification settings, auth state, push token). Location watchers and
settings screens update it from any thread; the dispatcher reads it
through snapshot(), which always returns a consistent ObserverState.
"""

import logging
import threading

from src.core.config import ObserverDefaults
from src.core.geo import Coordinate
from src.core.observer import ObserverState


logger = logging.getLogger(__name__)


class ObserverSession:
    """Thread-safe holder of the current observer state.

    Every update swaps in a new immutable ObserverState under a lock, so a
    snapshot never mixes fields from before and after an update.
    """

    def __init__(self, initial: ObserverState | None = None) -> None:
        """Initialize session.

        Args:
            initial: Starting state (defaults to a signed-out session)
        """
        self._state = initial or ObserverState()
        self._lock = threading.Lock()

    @classmethod
    def from_defaults(cls, defaults: ObserverDefaults) -> "ObserverSession":
        """Create a session from configured observer defaults."""
        location = None
        if defaults.latitude is not None and defaults.longitude is not None:
            location = Coordinate(
                latitude=defaults.latitude,
                longitude=defaults.longitude,
            )

        return cls(ObserverState(
            location=location,
            notifications_enabled=defaults.notifications_enabled,
            radius_miles=defaults.radius_miles,
            is_authenticated=defaults.authenticated,
            push_token=defaults.push_token,
        ))

    def snapshot(self) -> ObserverState:
        """Return the current state as one consistent snapshot."""
        with self._lock:
            return self._state

    def update_location(self, latitude: float, longitude: float) -> None:
        """Record a new location fix."""
        with self._lock:
            self._state = self._state.with_location(latitude, longitude)

    def set_notifications_enabled(self, enabled: bool) -> None:
        """Turn proximity notifications on or off."""
        with self._lock:
            self._state = self._state.with_notifications(enabled)
        logger.info("Notifications %s", "enabled" if enabled else "disabled")

    def toggle_notifications(self) -> bool:
        """Flip the notification setting.

        Returns:
            The new setting
        """
        with self._lock:
            enabled = not self._state.notifications_enabled
            self._state = self._state.with_notifications(enabled)
        logger.info("Notifications %s", "enabled" if enabled else "disabled")
        return enabled

    def update_radius(self, radius_miles: float) -> None:
        """Change the notification radius.

        A radius of zero or less is stored as-is; the notification rule
        treats it as "never notify".
        """
        with self._lock:
            self._state = self._state.with_radius(radius_miles)
        logger.info("Notification radius set to %.2f miles", radius_miles)

    def sign_in(self, push_token: str | None = None) -> None:
        """Mark the session as authenticated, optionally registering a token."""
        with self._lock:
            state = self._state.with_auth(True)
            if push_token is not None:
                state = state.with_push_token(push_token)
            self._state = state
        logger.info("Observer signed in")

    def sign_out(self) -> None:
        """Mark the session as signed out."""
        with self._lock:
            self._state = self._state.with_auth(False)
        logger.info("Observer signed out")

    def set_push_token(self, push_token: str | None) -> None:
        """Register (or clear) the device push token."""
        with self._lock:
            self._state = self._state.with_push_token(push_token)
