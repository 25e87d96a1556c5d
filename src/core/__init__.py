"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Litter report parsing
- Geo/distance calculations
- Proximity notification rule evaluation
- Push message formatting

All functions here are deterministic and have no I/O.
"""

from src.core.litter import LitterEvent, parse_litter_record
from src.core.geo import Coordinate, calculate_distance, is_within_radius
from src.core.observer import ObserverState
from src.core.rules import NotificationDecision, SuppressReason, evaluate_proximity_rule
from src.core.formatter import format_push_message, format_event_summary

__all__ = [
    # Litter
    "LitterEvent",
    "parse_litter_record",
    # Geo
    "Coordinate",
    "calculate_distance",
    "is_within_radius",
    # Observer
    "ObserverState",
    # Rules
    "NotificationDecision",
    "SuppressReason",
    "evaluate_proximity_rule",
    # Formatter
    "format_push_message",
    "format_event_summary",
]
