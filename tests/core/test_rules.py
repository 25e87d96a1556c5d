"""Unit tests for proximity notification rule evaluation.

Pure function tests - fast, no mocks needed.
"""

from unittest.mock import patch

import pytest

from src.core.geo import Coordinate, miles_to_meters, offset_coordinate
from src.core.litter import LitterEvent
from src.core.observer import ObserverState
from src.core.rules import (
    ACTION_DISPATCH,
    ACTION_SUPPRESS,
    SuppressReason,
    check_gates,
    evaluate_proximity_rule,
)


OBSERVER_LOCATION = Coordinate(latitude=37.7749, longitude=-122.4194)
TOKEN = "ExponentPushToken[abc123]"


@pytest.fixture
def observer():
    """A signed-in observer in San Francisco with a 0.2 mile radius."""
    return ObserverState(
        location=OBSERVER_LOCATION,
        notifications_enabled=True,
        radius_miles=0.2,
        is_authenticated=True,
        push_token=TOKEN,
    )


def make_event(distance_meters: float, bearing: float = 0.0) -> LitterEvent:
    """Create a litter event at a distance from the observer."""
    return LitterEvent(
        id=f"litter-{distance_meters}",
        location=offset_coordinate(OBSERVER_LOCATION, distance_meters, bearing),
    )


class TestEvaluateProximityRule:
    """Tests for evaluate_proximity_rule() pure function."""

    def test_dispatches_within_radius(self, observer):
        """Event 300 m away is inside a 0.2 mile (~321.868 m) radius."""
        event = make_event(300)

        decision = evaluate_proximity_rule(observer, event)

        assert decision.action == ACTION_DISPATCH
        assert decision.should_dispatch is True
        assert decision.event == event
        assert decision.push_token == TOKEN
        assert decision.reason is None
        assert decision.distance_meters == pytest.approx(300, rel=1e-6)

    def test_suppresses_outside_radius(self, observer):
        """Event 400 m away is outside a 0.2 mile radius."""
        decision = evaluate_proximity_rule(observer, make_event(400, bearing=90))

        assert decision.action == ACTION_SUPPRESS
        assert decision.reason == SuppressReason.OUT_OF_RADIUS
        assert decision.push_token is None
        assert decision.distance_meters == pytest.approx(400, rel=1e-6)

    def test_boundary_is_closed(self, observer):
        """Distance exactly equal to the radius dispatches."""
        radius_meters = miles_to_meters(observer.radius_miles)

        with patch("src.core.rules.calculate_distance", return_value=radius_meters):
            decision = evaluate_proximity_rule(observer, make_event(0))

        assert decision.should_dispatch is True

    @pytest.mark.parametrize("bearing", [0, 90, 225])
    def test_point_just_inside_boundary_dispatches(self, observer, bearing):
        """A point placed a micrometre inside the radius dispatches."""
        event = make_event(miles_to_meters(observer.radius_miles) - 1e-6, bearing)

        assert evaluate_proximity_rule(observer, event).should_dispatch is True

    def test_just_past_boundary_suppresses(self, observer):
        """A hair beyond the radius suppresses."""
        radius_meters = miles_to_meters(observer.radius_miles)

        with patch("src.core.rules.calculate_distance", return_value=radius_meters + 1e-6):
            decision = evaluate_proximity_rule(observer, make_event(0))

        assert decision.reason == SuppressReason.OUT_OF_RADIUS

    def test_same_location_dispatches(self, observer):
        """Litter reported at the observer's own location dispatches."""
        event = LitterEvent(id="here", location=OBSERVER_LOCATION)
        assert evaluate_proximity_rule(observer, event).should_dispatch is True

    def test_notifications_disabled_suppresses_regardless_of_distance(self, observer):
        """Disabled notifications win even for nearby litter."""
        disabled = observer.with_notifications(False)

        decision = evaluate_proximity_rule(disabled, make_event(0))

        assert decision.reason == SuppressReason.NOTIFICATIONS_DISABLED

    def test_not_authenticated_suppresses_within_radius(self, observer):
        """Signed-out observers are not notified even within radius."""
        signed_out = observer.with_auth(False)

        decision = evaluate_proximity_rule(signed_out, make_event(100))

        assert decision.reason == SuppressReason.NOT_AUTHENTICATED

    def test_missing_location_suppresses(self, observer):
        """No location fix means no notification."""
        no_location = ObserverState(
            location=None,
            is_authenticated=True,
            push_token=TOKEN,
        )

        decision = evaluate_proximity_rule(no_location, make_event(0))

        assert decision.reason == SuppressReason.NO_OBSERVER_LOCATION
        assert decision.distance_meters is None

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_push_token_suppresses(self, observer, token):
        """No push token means no notification."""
        decision = evaluate_proximity_rule(observer.with_push_token(token), make_event(0))
        assert decision.reason == SuppressReason.NO_PUSH_TOKEN

    @pytest.mark.parametrize("radius", [0, 0.0, -1.0])
    def test_non_positive_radius_never_notifies(self, observer, radius):
        """Zero or negative radius suppresses without error."""
        event = LitterEvent(id="here", location=OBSERVER_LOCATION)

        decision = evaluate_proximity_rule(observer.with_radius(radius), event)

        assert decision.reason == SuppressReason.OUT_OF_RADIUS

    def test_larger_radius_includes_farther_events(self, observer):
        """A 1 mile radius includes an event 1 km away."""
        decision = evaluate_proximity_rule(observer.with_radius(1.0), make_event(1000))
        assert decision.should_dispatch is True

    def test_does_not_modify_inputs(self, observer):
        """Evaluation leaves the observer snapshot untouched."""
        before = observer
        evaluate_proximity_rule(observer, make_event(300))
        assert observer == before


class TestCheckGates:
    """Tests for check_gates() ordering."""

    def test_all_gates_pass(self, observer):
        """A fully set-up observer passes every gate."""
        assert check_gates(observer) is None

    def test_disabled_checked_before_auth(self):
        """The first failing gate in order is reported."""
        state = ObserverState(notifications_enabled=False, is_authenticated=False)
        assert check_gates(state) == SuppressReason.NOTIFICATIONS_DISABLED

    def test_auth_checked_before_location(self):
        """Authentication is checked before location."""
        state = ObserverState(is_authenticated=False, location=None)
        assert check_gates(state) == SuppressReason.NOT_AUTHENTICATED

    def test_location_checked_before_token(self):
        """Location is checked before push token."""
        state = ObserverState(is_authenticated=True, location=None, push_token=None)
        assert check_gates(state) == SuppressReason.NO_OBSERVER_LOCATION
