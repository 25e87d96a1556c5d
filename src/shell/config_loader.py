"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

Models (Config, SupabaseConfig, PushConfig, ObserverDefaults) are defined
in src/core/config.py to avoid information leakage between layers.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Optional

import yaml

from src.core.config import Config, ObserverDefaults, PushConfig, SupabaseConfig
from src.core.observer import DEFAULT_RADIUS_MILES
from src.shell.secret_manager_client import SecretManagerClient, SecretManagerConfig


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = "config/config.yaml"


def _get_secret_manager_client() -> Optional[SecretManagerClient]:
    """Get or create a Secret Manager client.

    Returns None if no GCP project can be determined (e.g., local development).
    """
    project_id = os.environ.get("GCP_PROJECT")
    if not project_id:
        # Try to get from gcloud config
        try:
            result = subprocess.run(
                ["gcloud", "config", "get-value", "project"],
                capture_output=True,
                text=True,
                timeout=2,
            )
            if result.returncode == 0 and result.stdout.strip():
                project_id = result.stdout.strip()
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("gcloud not available: %s", e)

    if project_id:
        return SecretManagerClient(SecretManagerConfig(project_id=project_id))
    return None


def _resolve_value(value: Any, secret_client: Optional[SecretManagerClient] = None) -> Any:
    """Resolve a value that may contain secret or env var placeholders.

    Args:
        value: Value to resolve (may contain ${...} placeholders)
        secret_client: Client for resolving secrets

    Returns:
        Resolved value
    """
    if not isinstance(value, str):
        return value

    if secret_client:
        return secret_client.resolve(value)

    # No secret client - only handle env vars
    if value.startswith("${") and value.endswith("}"):
        var_spec = value[2:-1]
        if not var_spec.startswith("secret:"):
            env_value = os.environ.get(var_spec)
            if env_value:
                return env_value
            logger.warning("Environment variable %s not set", var_spec)

    return value


def _optional_float(value: Any) -> float | None:
    """Convert to float, keeping None."""
    return None if value is None else float(value)


def _parse_supabase(
    data: dict[str, Any],
    secret_client: Optional[SecretManagerClient] = None,
) -> SupabaseConfig:
    """Parse change feed settings from config data."""
    return SupabaseConfig(
        url=_resolve_value(data.get("url", ""), secret_client) or "",
        anon_key=_resolve_value(data.get("anon_key", ""), secret_client) or "",
        table=data.get("table", "trash_locations"),
        poll_interval_seconds=float(data.get("poll_interval_seconds", 5.0)),
        page_size=int(data.get("page_size", 100)),
    )


def _parse_push(
    data: dict[str, Any],
    secret_client: Optional[SecretManagerClient] = None,
) -> PushConfig:
    """Parse Expo push settings from config data."""
    return PushConfig(
        access_token=_resolve_value(data.get("access_token"), secret_client),
        chunk_size=int(data.get("chunk_size", 100)),
        timeout_seconds=int(data.get("timeout_seconds", 10)),
    )


def _parse_observer(
    data: dict[str, Any],
    secret_client: Optional[SecretManagerClient] = None,
) -> ObserverDefaults:
    """Parse initial observer settings from config data."""
    return ObserverDefaults(
        notifications_enabled=bool(data.get("notifications_enabled", True)),
        radius_miles=float(data.get("radius_miles", DEFAULT_RADIUS_MILES)),
        latitude=_optional_float(data.get("latitude")),
        longitude=_optional_float(data.get("longitude")),
        push_token=_resolve_value(data.get("push_token"), secret_client),
        authenticated=bool(data.get("authenticated", False)),
    )


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only placeholder expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    secret_client = _get_secret_manager_client()

    return Config(
        supabase=_parse_supabase(data.get("supabase") or {}, secret_client),
        push=_parse_push(data.get("push") or {}, secret_client),
        observer=_parse_observer(data.get("observer") or {}, secret_client),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH)

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using defaults", path)
        return Config()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using defaults")
        return Config()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: table %s, radius %.2f miles",
        config.supabase.table,
        config.observer.radius_miles,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Useful for simple deployments without a YAML file.

    Environment variables:
        SUPABASE_URL: Supabase project URL
        SUPABASE_ANON_KEY: Supabase API key (or secret supabase-anon-key)
        SUPABASE_TABLE: Litter table name
        EXPO_ACCESS_TOKEN: Expo access token (or secret expo-access-token)
        POLL_INTERVAL_SECONDS: Change feed poll interval
        NOTIFICATION_RADIUS_MILES: Initial notification radius
        OBSERVER_LATITUDE / OBSERVER_LONGITUDE: Initial observer location
        OBSERVER_PUSH_TOKEN: Push token of the local observer

    Returns:
        Config object from environment
    """
    secret_client = _get_secret_manager_client()

    if secret_client:
        anon_key = secret_client.get_secret_or_env("supabase-anon-key", "SUPABASE_ANON_KEY")
        access_token = secret_client.get_secret_or_env("expo-access-token", "EXPO_ACCESS_TOKEN")
    else:
        anon_key = os.environ.get("SUPABASE_ANON_KEY")
        access_token = os.environ.get("EXPO_ACCESS_TOKEN")

    supabase_url = os.environ.get("SUPABASE_URL", "")
    if not supabase_url:
        logger.warning("SUPABASE_URL not set")

    push_token = os.environ.get("OBSERVER_PUSH_TOKEN")

    return Config(
        supabase=SupabaseConfig(
            url=supabase_url,
            anon_key=anon_key or "",
            table=os.environ.get("SUPABASE_TABLE", "trash_locations"),
            poll_interval_seconds=float(os.environ.get("POLL_INTERVAL_SECONDS", "5")),
        ),
        push=PushConfig(access_token=access_token),
        observer=ObserverDefaults(
            radius_miles=float(
                os.environ.get("NOTIFICATION_RADIUS_MILES", str(DEFAULT_RADIUS_MILES))
            ),
            latitude=_optional_float(os.environ.get("OBSERVER_LATITUDE")),
            longitude=_optional_float(os.environ.get("OBSERVER_LONGITUDE")),
            push_token=push_token,
            authenticated=push_token is not None,
        ),
    )
