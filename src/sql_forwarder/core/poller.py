from __future__ import annotations

import threading
from typing import Optional

from sql_forwarder.core.backoff import BackoffController
from sql_forwarder.core.formatter import KeyValueFormatter, RowFormatter
from sql_forwarder.core.models import (
    DeliveryOutcome,
    ExtractionBatch,
    PollConfiguration,
    PollPhase,
    TickOutcome,
)
from sql_forwarder.core.query import QueryBuilder, render_cursor_value
from sql_forwarder.errors import ConfigurationError, DataSourceError, PersistenceError
from sql_forwarder.http.client import Transmitter
from sql_forwarder.sources.sql import DataSource
from sql_forwarder.state.base import CursorStore
from sql_forwarder.utils.logging import get_logger


class PollLoop:
    """
    Runs one poll-extract-deliver cycle per tick.

    A single-slot lock marks "extraction in progress": a tick that cannot take
    it without blocking is dropped. The slot is released on every exit path,
    so one failing tick never wedges the loop.
    """

    def __init__(
        self,
        config: PollConfiguration,
        source: DataSource,
        cursor_store: CursorStore,
        transmitter: Transmitter,
        backoff: BackoffController,
        formatter: Optional[RowFormatter] = None,
        query_builder: Optional[QueryBuilder] = None,
    ):
        """
        Initialize the poll loop with its collaborators.

        Args:
            config: Immutable settings for this run.
            source: Data source executing the extraction query.
            cursor_store: Persistence for the last delivered sequence value.
            transmitter: Delivers formatted payloads to the ingestion endpoint.
            backoff: Controls the poll interval after delivery outcomes.
            formatter: Batch formatter; key-value pairs by default.
            query_builder: Builds the cursor-bounded query.
        """
        self.config = config
        self.source = source
        self.cursor_store = cursor_store
        self.transmitter = transmitter
        self.backoff = backoff
        self.formatter = formatter or KeyValueFormatter()
        self.query_builder = query_builder or QueryBuilder()
        self._in_progress = threading.Lock()
        self._phase = PollPhase.IDLE
        self.log = get_logger("sql_forwarder.poller")

    @property
    def phase(self) -> PollPhase:
        return self._phase

    def tick(self) -> TickOutcome:
        """Run one tick and report how it ended."""
        if not self._in_progress.acquire(blocking=False):
            self.log.debug("Extraction already in progress. Skipping this cycle.")
            return TickOutcome.SKIPPED_OVERLAP

        try:
            return self._run_tick()
        except Exception:
            self.log.exception("Tick failed unexpectedly")
            return TickOutcome.ABORTED
        finally:
            self._phase = PollPhase.IDLE
            self._in_progress.release()

    def _run_tick(self) -> TickOutcome:
        self._phase = PollPhase.EXTRACTING

        try:
            query = self.query_builder.build(self.config, self.cursor_store.read())
        except ConfigurationError as e:
            self.log.error("Tick aborted: %s", e)
            return TickOutcome.ABORTED

        try:
            self.source.ensure_connected()
            batch = self.source.execute_query(query)
        except DataSourceError as e:
            self.log.error("Tick aborted: %s", e)
            return TickOutcome.ABORTED

        if batch.is_empty():
            return TickOutcome.SKIPPED_EMPTY

        self._phase = PollPhase.DELIVERING
        outcome = self.deliver(batch)

        if not outcome.success:
            self.backoff.on_failure()
            self.log.warning("HTTP transmission not OK - status=%s error=%s", outcome.status_code, outcome.error)
            return TickOutcome.DELIVERY_FAILED

        self._advance_cursor(outcome.max_sequence_value)
        self.backoff.on_success()
        return TickOutcome.DELIVERED

    def deliver(self, batch: ExtractionBatch) -> DeliveryOutcome:
        """Format and transmit a non-empty batch."""
        max_value = batch.max_value(self.config.sequence_field)
        payload = self.formatter.format(
            batch,
            self.config.additional_fields,
            self.config.timestamp_field,
            self.config.event_timestamp_format,
        )
        self.log.debug("KVP payload: %s", payload)

        result = self.transmitter.send(payload)
        return DeliveryOutcome(
            success=result.ok,
            max_sequence_value=max_value,
            status_code=result.status_code,
            error=result.error,
        )

    def _advance_cursor(self, max_value) -> None:
        value = render_cursor_value(max_value, self.config.cursor_format)
        try:
            self.cursor_store.write(value)
        except PersistenceError as e:
            self.log.error("Delivered batch but cursor was not saved: %s", e)
            return
        self.log.info("Cursor advanced to %s", value)
