"""Cloud Function Entry Point - Root Module.

This is the root-level entry point for Google Cloud Functions.
It imports from the src package.
"""

from src.main import (
    send_push_notification,
)

__all__ = [
    "send_push_notification",
]
