"""Supabase Change Feed Client - Imperative Shell.

This module polls the Supabase REST (PostgREST) endpoint for litter
reports inserted into the trash_locations table and exposes them as an
async stream of raw rows. All I/O is contained here; parsing is in the
core module.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from typing import Any

import requests

from src.core.config import SupabaseConfig


logger = logging.getLogger(__name__)


# Default timeout for REST requests (seconds)
DEFAULT_TIMEOUT = 30


class SupabaseFeedClient:
    """Client that turns trash_locations inserts into a stream of rows.

    Rows are fetched in creation order using a created_at cursor. Rows that
    share the cursor timestamp are remembered so the next poll (which uses
    an inclusive bound) does not return them again.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        config: SupabaseConfig,
        timeout: int = DEFAULT_TIMEOUT,
        since: datetime | str | None = None,
    ) -> None:
        """Initialize feed client.

        Args:
            config: Supabase connection settings
            timeout: Request timeout in seconds
            since: Only rows created at or after this time are streamed
                   (defaults to now, so only new inserts are seen)
        """
        self.config = config
        self.timeout = timeout

        if since is None:
            since = datetime.now(timezone.utc)
        if isinstance(since, datetime):
            since = since.isoformat()

        self._cursor: str = since
        self._cursor_ids: set[str] = set()
        self._closed = False

    @property
    def cursor(self) -> str:
        """created_at value the next poll starts from."""
        return self._cursor

    @property
    def rest_url(self) -> str:
        """REST endpoint for the configured table."""
        return f"{self.config.url.rstrip('/')}/rest/v1/{self.config.table}"

    def _build_headers(self) -> dict[str, str]:
        """Build auth headers for the REST API."""
        return {
            "apikey": self.config.anon_key,
            "Authorization": f"Bearer {self.config.anon_key}",
            "Accept": "application/json",
        }

    def fetch_rows(
        self,
        since: str,
        limit: int,
        exclude_ids: set[str] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch rows created at or after a timestamp, oldest first.

        This method performs HTTP I/O.

        Args:
            since: Inclusive created_at lower bound (ISO-8601)
            limit: Maximum rows to return
            exclude_ids: Row ids to leave out of the page

        Returns:
            Raw rows from the table

        Raises:
            requests.RequestException: If the request fails
        """
        params = {
            "select": "*",
            "created_at": f"gte.{since}",
            "order": "created_at.asc,id.asc",
            "limit": str(limit),
        }
        if exclude_ids:
            params["id"] = f"not.in.({','.join(sorted(exclude_ids))})"

        response = requests.get(
            self.rest_url,
            params=params,
            headers=self._build_headers(),
            timeout=self.timeout,
        )
        response.raise_for_status()

        rows = response.json()
        if not isinstance(rows, list):
            logger.warning("Unexpected change feed response: %r", rows)
            return []

        return rows

    def poll_once(self) -> list[dict[str, Any]]:
        """Fetch the next page of new rows and advance the cursor.

        This method performs HTTP I/O.

        Returns:
            Rows not seen by previous polls, in creation order

        Raises:
            requests.RequestException: If the request fails
        """
        # Ids already delivered at the cursor are excluded server-side
        rows = self.fetch_rows(self._cursor, self.config.page_size, self._cursor_ids)

        new_rows = []
        for row in rows:
            if not isinstance(row, dict):
                logger.warning("Skipping non-object change feed row: %r", row)
                continue

            created_at = row.get("created_at")
            row_id = str(row.get("id"))

            if created_at == self._cursor and row_id in self._cursor_ids:
                continue

            new_rows.append(row)

            if created_at is None:
                continue
            if created_at != self._cursor:
                self._cursor = created_at
                self._cursor_ids = set()
            self._cursor_ids.add(row_id)

        if new_rows:
            logger.info(
                "Fetched %d new row(s) from %s",
                len(new_rows),
                self.config.table,
            )

        return new_rows

    def close(self) -> None:
        """Stop any running stream after its current poll."""
        self._closed = True

    async def stream(self, max_polls: int | None = None) -> AsyncIterator[dict[str, Any]]:
        """Yield newly inserted rows as they appear.

        Each poll runs in a worker thread so the event loop is never
        blocked. A failed poll is logged and retried after the poll
        interval. Runs until close() is called, the task is cancelled, or
        max_polls polls have been made.

        Args:
            max_polls: Stop after this many polls (None for no limit)

        Yields:
            Raw rows, in creation order
        """
        polls = 0

        while not self._closed:
            if max_polls is not None and polls >= max_polls:
                break
            polls += 1

            try:
                rows = await asyncio.to_thread(self.poll_once)
            except requests.RequestException as e:
                logger.error("Change feed poll failed: %s", str(e))
                rows = []

            for row in rows:
                yield row

            # A full page means more rows may be waiting
            if len(rows) < self.config.page_size:
                await asyncio.sleep(self.config.poll_interval_seconds)
