"""Consumer side of the pgq protocol.

A registered consumer claims the events between its last acknowledged tick and the next
tick as a batch, reads them, retries the ones it cannot process yet, and finishes the
batch to move its position forward. A consumer has at most one open batch: asking for
the next batch while one is open returns the same batch again.

Retry and finish must come from whichever process holds the batch. Events may be
delivered more than once, so processing has to tolerate duplicates.
"""

from collections.abc import Iterator
from datetime import datetime, timedelta

from pgq_client.adapter_base import AdapterBound
from pgq_client.exceptions import PgqValidationError
from pgq_client.marshal import (
    as_flag,
    batch_cursor_call,
    decode_rows,
    event_retry_call,
    quote_ident,
    render_interval,
)
from pgq_client.queue_model_dto import Event, NextBatchInfo

DEFAULT_FETCH_SIZE = 100


class Consumer(AdapterBound):
    """Register consumers and claim, retry and finish batches."""

    def register_consumer(self, queue_name: str, consumer_name: str) -> bool:
        """pgq.register_consumer(2): subscribe a consumer. False when already registered."""
        registered = as_flag(
            self.adapter.select_value("SELECT pgq.register_consumer(%s, %s)", queue_name, consumer_name)
        )
        if registered:
            self.logger.info("Registered consumer %s on %s", consumer_name, queue_name)
        return registered

    def register_consumer_at(self, queue_name: str, consumer_name: str, tick_id: int) -> bool:
        """pgq.register_consumer_at(3): subscribe a consumer starting from a given tick.

        False when the consumer already exists.
        """
        registered = as_flag(
            self.adapter.select_value(
                "SELECT pgq.register_consumer_at(%s, %s, %s)",
                queue_name,
                consumer_name,
                tick_id,
            )
        )
        if registered:
            self.logger.info("Registered consumer %s on %s at tick %s", consumer_name, queue_name, tick_id)
        return registered

    def unregister_consumer(self, queue_name: str, consumer_name: str) -> bool:
        """pgq.unregister_consumer(2): unsubscribe a consumer. False when it did not exist.

        Finish any open batch first.
        """
        unregistered = as_flag(
            self.adapter.select_value("SELECT pgq.unregister_consumer(%s, %s)", queue_name, consumer_name)
        )
        if unregistered:
            self.logger.info("Unregistered consumer %s from %s", consumer_name, queue_name)
        return unregistered

    def next_batch_info(self, queue_name: str, consumer_name: str) -> NextBatchInfo:
        """pgq.next_batch_info(2): claim the next batch, or return the one already open.

        All fields are None when no events are ready.
        """
        row = self.adapter.select_one("SELECT * FROM pgq.next_batch_info(%s, %s)", queue_name, consumer_name)
        info = NextBatchInfo.model_validate(row or {})
        self._log_claim(queue_name, consumer_name, info.batch_id)
        return info

    def next_batch(self, queue_name: str, consumer_name: str) -> int | None:
        """pgq.next_batch(2): like next_batch_info but returns just the batch ID (or None)."""
        batch_id = self.adapter.select_value("SELECT pgq.next_batch(%s, %s)", queue_name, consumer_name)
        self._log_claim(queue_name, consumer_name, batch_id)
        return batch_id

    def next_batch_custom(
        self,
        queue_name: str,
        consumer_name: str,
        min_lag: timedelta | int | str | None = None,
        min_count: int | None = None,
        min_interval: timedelta | int | str | None = None,
    ) -> NextBatchInfo:
        """pgq.next_batch_custom(5): claim the next batch with batching thresholds.

        Args:
            queue_name: Name of the queue.
            consumer_name: Name of the consumer.
            min_lag: Only take events older than this (timedelta, seconds or interval text).
            min_count: Batch should contain at least this many events.
            min_interval: Batch should cover at least this much time.

        The thresholds are applied by the backend.
        """
        row = self.adapter.select_one(
            "SELECT * FROM pgq.next_batch_custom(%s, %s, %s::interval, %s, %s::interval)",
            queue_name,
            consumer_name,
            render_interval(min_lag),
            min_count,
            render_interval(min_interval),
        )
        info = NextBatchInfo.model_validate(row or {})
        self._log_claim(queue_name, consumer_name, info.batch_id)
        return info

    def get_batch_events(self, batch_id: int) -> list[Event]:
        """pgq.get_batch_events(1): every event of an open batch.

        Read-only. The backend raises "batch not found" for unknown or finished batches.
        """
        rows = self.adapter.select_all("SELECT * FROM pgq.get_batch_events(%s)", batch_id)
        return decode_rows(Event, rows)

    def get_batch_cursor(
        self,
        batch_id: int,
        cursor_name: str,
        quick_limit: int,
        extra_where: str | None = None,
    ) -> list[Event]:
        """pgq.get_batch_cursor(3/4): open a cursor over the batch and return the first rows.

        Returns up to ``quick_limit`` events at once; the rest are read with
        fetch_batch_cursor in the same transaction. ``extra_where`` is an SQL condition
        evaluated by the backend to narrow the events.
        """
        call = batch_cursor_call(batch_id, cursor_name, quick_limit, extra_where)
        return decode_rows(Event, call.run(self.adapter))

    def fetch_batch_cursor(self, cursor_name: str, count: int) -> list[Event]:
        """Read the next ``count`` events from a cursor opened by get_batch_cursor."""
        if count <= 0:
            raise PgqValidationError(f"count must be positive, got {count}")
        rows = self.adapter.select_all(f"FETCH {int(count)} FROM {quote_ident(cursor_name)}")
        return decode_rows(Event, rows)

    def close_batch_cursor(self, cursor_name: str) -> None:
        self.adapter.execute(f"CLOSE {quote_ident(cursor_name)}")

    def iter_batch_events(
        self,
        batch_id: int,
        cursor_name: str,
        quick_limit: int,
        fetch_size: int | None = None,
        extra_where: str | None = None,
    ) -> Iterator[Event]:
        """Yield every event of a batch through a cursor, page by page.

        Must run inside one transaction (``adapter.transaction()``). A ``quick_limit`` of
        0 returns no rows up front, and everything is FETCHed in pages of ``fetch_size``
        (default DEFAULT_FETCH_SIZE).
        """
        fetch_size = fetch_size or quick_limit or DEFAULT_FETCH_SIZE
        events = self.get_batch_cursor(batch_id, cursor_name, quick_limit, extra_where)
        yield from events
        if len(events) < quick_limit:
            # pgq closes the cursor itself once the quick rows exhaust it
            return
        while True:
            page = self.fetch_batch_cursor(cursor_name, fetch_size)
            if not page:
                break
            yield from page
        self.close_batch_cursor(cursor_name)

    def event_retry(
        self,
        batch_id: int,
        event_id: int,
        retry_time: datetime | str | None = None,
        retry_seconds: int | None = None,
    ) -> bool:
        """pgq.event_retry(3a/3b): put one event into the retry queue.

        Exactly one of ``retry_time`` (when to redeliver) and ``retry_seconds`` (delay)
        must be given. Returns False when the event is already in the retry queue.
        """
        call = event_retry_call(batch_id, event_id, retry_time, retry_seconds)
        retried = as_flag(call.run(self.adapter))
        self.logger.debug("Event %s of batch %s retry=%s", event_id, batch_id, retried)
        return retried

    def batch_retry(self, batch_id: int, retry_seconds: int) -> int:
        """pgq.batch_retry(2): put the whole batch into the retry queue.

        Returns the number of events affected. The batch still has to be finished.
        """
        count = self.adapter.select_value("SELECT pgq.batch_retry(%s, %s)", batch_id, retry_seconds)
        self.logger.info("Batch %s: %s events scheduled for retry in %ss", batch_id, count, retry_seconds)
        return count

    def finish_batch(self, batch_id: int) -> bool:
        """pgq.finish_batch(1): close the batch. False when it was not found or already closed."""
        finished = as_flag(self.adapter.select_value("SELECT pgq.finish_batch(%s)", batch_id))
        self.logger.debug("Finish batch %s: %s", batch_id, finished)
        return finished

    def _log_claim(self, queue_name: str, consumer_name: str, batch_id: int | None) -> None:
        if batch_id is None:
            self.logger.debug("No batch ready for %s on %s", consumer_name, queue_name)
        else:
            self.logger.debug("Batch %s open for %s on %s", batch_id, consumer_name, queue_name)
