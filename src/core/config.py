"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from src.core.observer import DEFAULT_RADIUS_MILES


# Expo accepts at most 100 messages per push request
MAX_PUSH_CHUNK_SIZE = 100


@dataclass
class SupabaseConfig:
    """Connection settings for the Supabase change feed.

    Attributes:
        url: Project URL (e.g. https://<ref>.supabase.co)
        anon_key: API key sent as apikey/Authorization headers
        table: Table holding litter reports
        poll_interval_seconds: Delay between change-feed polls
        page_size: Maximum rows fetched per poll
    """
    url: str = ""
    anon_key: str = ""
    table: str = "trash_locations"
    poll_interval_seconds: float = 5.0
    page_size: int = 100


@dataclass
class PushConfig:
    """Settings for the Expo push service.

    Attributes:
        access_token: Expo access token (optional, enables enhanced security)
        chunk_size: Messages per push request
        timeout_seconds: HTTP timeout for push requests
    """
    access_token: str | None = None
    chunk_size: int = MAX_PUSH_CHUNK_SIZE
    timeout_seconds: int = 10


@dataclass
class ObserverDefaults:
    """Initial observer settings for a new session.

    Attributes:
        notifications_enabled: Whether notifications start enabled
        radius_miles: Initial notification radius
        latitude: Initial location latitude (optional)
        longitude: Initial location longitude (optional)
        push_token: Push token of the session (optional)
        authenticated: Whether the session starts signed in
    """
    notifications_enabled: bool = True
    radius_miles: float = DEFAULT_RADIUS_MILES
    latitude: float | None = None
    longitude: float | None = None
    push_token: str | None = None
    authenticated: bool = False


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        supabase: Change feed connection settings
        push: Expo push settings
        observer: Initial observer settings
    """
    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)
    push: PushConfig = field(default_factory=PushConfig)
    observer: ObserverDefaults = field(default_factory=ObserverDefaults)


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_coordinates(lat: float, lon: float, field_name: str) -> list[ValidationError]:
    """Validate latitude/longitude coordinates.

    Pure function.

    Args:
        lat: Latitude value
        lon: Longitude value
        field_name: Name of the field for error messages

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not -90 <= lat <= 90:
        errors.append(ValidationError(
            field=field_name,
            message=f"Latitude {lat} out of range [-90, 90]",
        ))

    if not -180 <= lon <= 180:
        errors.append(ValidationError(
            field=field_name,
            message=f"Longitude {lon} out of range [-180, 180]",
        ))

    return errors


def _is_unresolved(value: str | None) -> bool:
    """Check if a value is empty or still an unresolved ${...} placeholder."""
    return not value or value.startswith("${")


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    if config.observer.radius_miles <= 0:
        errors.append(ValidationError(
            field="observer.radius_miles",
            message=f"Notification radius must be positive, got {config.observer.radius_miles}",
        ))

    if (config.observer.latitude is None) != (config.observer.longitude is None):
        errors.append(ValidationError(
            field="observer",
            message="latitude and longitude must be set together",
        ))
    elif config.observer.latitude is not None:
        errors.extend(validate_coordinates(
            config.observer.latitude, config.observer.longitude,
            "observer",
        ))

    if config.supabase.poll_interval_seconds <= 0:
        errors.append(ValidationError(
            field="supabase.poll_interval_seconds",
            message=f"Poll interval must be positive, got {config.supabase.poll_interval_seconds}",
        ))

    if config.supabase.page_size <= 0:
        errors.append(ValidationError(
            field="supabase.page_size",
            message=f"Page size must be positive, got {config.supabase.page_size}",
        ))

    if not 1 <= config.push.chunk_size <= MAX_PUSH_CHUNK_SIZE:
        errors.append(ValidationError(
            field="push.chunk_size",
            message=f"Chunk size must be between 1 and {MAX_PUSH_CHUNK_SIZE}, got {config.push.chunk_size}",
        ))

    if _is_unresolved(config.supabase.url):
        errors.append(ValidationError(
            field="supabase.url",
            message="Supabase URL not set (or still contains placeholder)",
            severity="warning",
        ))

    if _is_unresolved(config.supabase.anon_key):
        errors.append(ValidationError(
            field="supabase.anon_key",
            message="Supabase key not set (or still contains placeholder)",
            severity="warning",
        ))

    if config.push.access_token is not None and _is_unresolved(config.push.access_token):
        errors.append(ValidationError(
            field="push.access_token",
            message="Expo access token not resolved (still contains placeholder)",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
