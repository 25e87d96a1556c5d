"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- Supabase change feed client (HTTP)
- Expo push client (HTTP)
- Observer session state (shared, thread-safe)
- Configuration loading (environment/files/Secret Manager)

Keep this layer thin and simple. All business logic should be in core.
"""

from src.shell.supabase_feed_client import SupabaseFeedClient
from src.shell.expo_push_client import ExpoPushClient
from src.shell.push_notifier import ExpoPushNotifier, PushDeliveryError
from src.shell.observer_session import ObserverSession
from src.shell.config_loader import load_config, Config

__all__ = [
    "SupabaseFeedClient",
    "ExpoPushClient",
    "ExpoPushNotifier",
    "PushDeliveryError",
    "ObserverSession",
    "load_config",
    "Config",
]
