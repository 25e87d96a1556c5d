"""Geographic calculations - Pure functions.

This module provides distance and radius calculations for litter reports
and observer locations. All functions are pure with no side effects.
"""

import math
from dataclasses import dataclass


# Earth's radius in meters
EARTH_RADIUS_METERS = 6_371_000.0

# Statute mile in meters (fixed conversion used for notification radius)
METERS_PER_MILE = 1609.34


@dataclass(frozen=True)
class Coordinate:
    """Immutable geographic coordinate.

    Callers are expected to supply latitude in [-90, 90] and longitude in
    [-180, 180]. Values are not range-checked here; see
    src.core.config.validate_coordinates for configured values.

    Attributes:
        latitude: Latitude in degrees
        longitude: Longitude in degrees
    """
    latitude: float
    longitude: float


def calculate_distance(origin: Coordinate, target: Coordinate) -> float:
    """Calculate distance between two points using Haversine formula.

    Pure function.

    Args:
        origin: First point
        target: Second point

    Returns:
        Distance in meters
    """
    lat1_rad = math.radians(origin.latitude)
    lat2_rad = math.radians(target.latitude)
    delta_lat = math.radians(target.latitude - origin.latitude)
    delta_lon = math.radians(target.longitude - origin.longitude)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    # Rounding can push `a` just past 1 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def miles_to_meters(miles: float) -> float:
    """Convert statute miles to meters.

    Pure function.
    """
    return miles * METERS_PER_MILE


def is_within_radius(
    origin: Coordinate,
    target: Coordinate,
    radius_meters: float,
) -> bool:
    """Check if target is within a radius of origin.

    Pure function. The boundary is closed: a point exactly on the radius
    is inside.

    Args:
        origin: Center point
        target: Point to check
        radius_meters: Radius in meters

    Returns:
        True if target is within radius
    """
    return calculate_distance(origin, target) <= radius_meters


def offset_coordinate(
    origin: Coordinate,
    distance_meters: float,
    bearing_degrees: float,
) -> Coordinate:
    """Compute the point reached by travelling a distance along a bearing.

    Pure function. Inverse of calculate_distance on the same sphere, useful
    for building points at a known distance from an observer.

    Args:
        origin: Starting point
        distance_meters: Great-circle distance to travel
        bearing_degrees: Initial bearing, clockwise from north

    Returns:
        Destination coordinate
    """
    lat1 = math.radians(origin.latitude)
    lon1 = math.radians(origin.longitude)
    bearing = math.radians(bearing_degrees)
    angular = distance_meters / EARTH_RADIUS_METERS

    lat2 = math.asin(
        math.sin(lat1) * math.cos(angular)
        + math.cos(lat1) * math.sin(angular) * math.cos(bearing)
    )
    lon2 = lon1 + math.atan2(
        math.sin(bearing) * math.sin(angular) * math.cos(lat1),
        math.cos(angular) - math.sin(lat1) * math.sin(lat2),
    )

    # Normalize longitude to [-180, 180)
    lon2_deg = (math.degrees(lon2) + 540) % 360 - 180

    return Coordinate(latitude=math.degrees(lat2), longitude=lon2_deg)
