"""Unit tests for configuration validation.

Pure function tests - no mocks needed.
"""

from src.core.config import (
    Config,
    ObserverDefaults,
    PushConfig,
    SupabaseConfig,
    validate_config,
    validate_coordinates,
)


def make_config(**observer_kwargs) -> Config:
    """Create a valid config with resolved credentials."""
    return Config(
        supabase=SupabaseConfig(url="https://ref.supabase.co", anon_key="anon"),
        push=PushConfig(),
        observer=ObserverDefaults(**observer_kwargs),
    )


class TestValidateConfig:
    """Tests for validate_config() function."""

    def test_defaults_with_credentials_are_valid(self):
        """A config with credentials and defaults has no findings."""
        result = validate_config(make_config())

        assert result.valid is True
        assert result.errors == []

    def test_empty_config_only_warns(self):
        """Missing credentials are warnings, not errors."""
        result = validate_config(Config())

        assert result.valid is True
        assert {w.field for w in result.warnings} == {"supabase.url", "supabase.anon_key"}

    def test_unresolved_placeholder_warns(self):
        """Values still holding ${...} placeholders are flagged."""
        config = make_config()
        config.supabase.anon_key = "${SUPABASE_ANON_KEY}"
        config.push.access_token = "${secret:expo-access-token}"

        result = validate_config(config)

        assert result.valid is True
        assert {w.field for w in result.warnings} == {"supabase.anon_key", "push.access_token"}

    def test_non_positive_radius_is_error(self):
        """Radius must be positive."""
        result = validate_config(make_config(radius_miles=0))

        assert result.valid is False
        assert result.critical_errors[0].field == "observer.radius_miles"

    def test_latitude_without_longitude_is_error(self):
        """Observer coordinates come in pairs."""
        result = validate_config(make_config(latitude=37.0))

        assert result.valid is False
        assert result.critical_errors[0].field == "observer"

    def test_out_of_range_observer_location_is_error(self):
        """Observer coordinates are range-checked."""
        result = validate_config(make_config(latitude=95.0, longitude=0.0))
        assert result.valid is False

    def test_poll_interval_must_be_positive(self):
        """Poll interval must be positive."""
        config = make_config()
        config.supabase.poll_interval_seconds = 0

        result = validate_config(config)

        assert [e.field for e in result.critical_errors] == ["supabase.poll_interval_seconds"]

    def test_page_size_must_be_positive(self):
        """Page size must be positive."""
        config = make_config()
        config.supabase.page_size = 0

        assert validate_config(config).valid is False

    def test_chunk_size_capped_at_expo_limit(self):
        """Expo accepts at most 100 messages per request."""
        config = make_config()
        config.push.chunk_size = 101

        result = validate_config(config)

        assert [e.field for e in result.critical_errors] == ["push.chunk_size"]


class TestValidateCoordinates:
    """Tests for validate_coordinates() function."""

    def test_valid(self):
        """In-range coordinates produce no errors."""
        assert validate_coordinates(37.7749, -122.4194, "observer") == []

    def test_both_out_of_range(self):
        """Each out-of-range component is reported."""
        errors = validate_coordinates(-91, 181, "observer")
        assert len(errors) == 2
