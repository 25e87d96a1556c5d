"""Change Feed Dispatcher - Wires Functional Core and Imperative Shell.

This module consumes newly reported litter records from a change feed,
evaluates the proximity rule against the current observer snapshot, and
fires the notify side effect for every dispatch decision.

Records are handled one at a time, in delivery order. notify() is invoked
synchronously in that order; if it returns an awaitable, the awaitable
runs as an independent task and the dispatcher moves on to the next
record without waiting for it.

The dispatcher keeps no memory of event ids. A record delivered twice by
the feed is evaluated (and possibly notified) twice.
"""

import asyncio
import functools
import inspect
import logging
from collections.abc import AsyncIterable, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from src.core.formatter import format_event_summary
from src.core.litter import LitterEvent, extract_change_record, parse_litter_record
from src.core.observer import ObserverState
from src.core.rules import (
    NotificationDecision,
    SuppressReason,
    evaluate_proximity_rule,
    suppress,
)


logger = logging.getLogger(__name__)


NotifyCallback = Callable[[LitterEvent, str], Awaitable[Any] | None]


@dataclass
class DispatchResult:
    """Running totals for a dispatcher.

    Attributes:
        records_received: Feed records handled
        dispatched: Dispatch decisions (notify invoked)
        suppressed: Suppress decisions, counted by reason
        notify_failures: notify() calls that raised or whose task failed
    """
    records_received: int = 0
    dispatched: int = 0
    suppressed: dict[str, int] = field(default_factory=dict)
    notify_failures: int = 0

    @property
    def suppressed_total(self) -> int:
        """Total suppress decisions across all reasons."""
        return sum(self.suppressed.values())

    @property
    def summary(self) -> str:
        """Human-readable summary of the dispatch totals."""
        return (
            f"Received {self.records_received} records, "
            f"{self.dispatched} dispatched, "
            f"{self.suppressed_total} suppressed, "
            f"{self.notify_failures} notify failures"
        )


class ChangeFeedDispatcher:
    """Turns litter change-feed records into proximity notifications.

    This class wires together:
    - An observer snapshot accessor (read once per record)
    - Core functions (parsing, proximity rule)
    - A notify callback (push delivery)
    """

    def __init__(
        self,
        get_snapshot: Callable[[], ObserverState],
        notify: NotifyCallback,
    ) -> None:
        """Initialize dispatcher.

        Args:
            get_snapshot: Returns the current observer state
            notify: Called as notify(event, push_token) for each dispatch;
                    may return an awaitable
        """
        self.get_snapshot = get_snapshot
        self.notify = notify
        self.result = DispatchResult()
        self._pending: set[asyncio.Future] = set()

    @property
    def pending(self) -> int:
        """Number of notify tasks still in flight."""
        return len(self._pending)

    def _record_suppressed(self, decision: NotificationDecision) -> None:
        """Count a suppress decision by its reason."""
        reason = decision.reason or "unknown"
        self.result.suppressed[reason] = self.result.suppressed.get(reason, 0) + 1

    def _notify_failed(self, event: LitterEvent, error: BaseException) -> None:
        """Log and count a failed notification."""
        self.result.notify_failures += 1
        logger.error(
            "Failed to send notification for litter %s: %s",
            event.id,
            error,
        )

    def _on_notify_done(self, event: LitterEvent, task: asyncio.Future) -> None:
        """Collect the outcome of a finished notify task."""
        self._pending.discard(task)

        if task.cancelled():
            logger.warning("Notification for litter %s was cancelled", event.id)
            return

        error = task.exception()
        if error is not None:
            self._notify_failed(event, error)

    def _invoke_notify(self, event: LitterEvent, push_token: str) -> None:
        """Call notify() and schedule its awaitable without waiting for it."""
        try:
            outcome = self.notify(event, push_token)
        except Exception as e:
            self._notify_failed(event, e)
            return

        if not inspect.isawaitable(outcome):
            return

        try:
            asyncio.get_running_loop()
        except RuntimeError as e:
            # No running loop to schedule the awaitable on
            if inspect.iscoroutine(outcome):
                outcome.close()
            self._notify_failed(event, e)
            return

        task = asyncio.ensure_future(outcome)
        self._pending.add(task)
        task.add_done_callback(functools.partial(self._on_notify_done, event))

    def handle_record(self, record: Any) -> NotificationDecision:
        """Evaluate one change-feed record and notify if it is in range.

        Malformed records are logged and suppressed; they never raise.

        Args:
            record: Raw row, or a realtime payload wrapping the row

        Returns:
            The decision made for this record
        """
        self.result.records_received += 1

        event = None
        row: dict[str, Any] = {}
        if isinstance(record, dict):
            row = extract_change_record(record)
            event = parse_litter_record(row)

        if event is None:
            logger.warning("Skipping malformed litter record: %r", record)
            decision = suppress(None, SuppressReason.MALFORMED_EVENT)
            self._record_suppressed(decision)
            return decision

        if event.reported_at is None and row.get("created_at") is not None:
            logger.warning(
                "Litter %s has an unreadable created_at: %r",
                event.id,
                row["created_at"],
            )

        # One snapshot per record; never re-read mid-evaluation
        try:
            observer = self.get_snapshot()
        except Exception as e:
            logger.error("Failed to read observer state for litter %s: %s", event.id, e)
            decision = suppress(event, SuppressReason.OBSERVER_UNAVAILABLE)
            self._record_suppressed(decision)
            return decision

        decision = evaluate_proximity_rule(observer, event)

        if not decision.should_dispatch:
            logger.debug(
                "Suppressed notification for %s: %s",
                format_event_summary(event),
                decision.reason,
            )
            self._record_suppressed(decision)
            return decision

        logger.info(
            "Notifying about %s (%.0f m away)",
            format_event_summary(event),
            decision.distance_meters,
        )
        self.result.dispatched += 1
        self._invoke_notify(event, decision.push_token)

        return decision

    async def drain(self) -> None:
        """Wait until every in-flight notify task has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def run(self, feed: AsyncIterable[Any]) -> DispatchResult:
        """Consume a change feed until it is exhausted.

        Records are handled strictly in delivery order. Once the feed ends,
        waits for outstanding notifications before returning.

        Args:
            feed: Async iterable of raw records

        Returns:
            DispatchResult with totals for this dispatcher
        """
        logger.info("Listening for new litter reports")

        async for record in feed:
            self.handle_record(record)

        await self.drain()

        logger.info("Change feed closed: %s", self.result.summary)
        return self.result
