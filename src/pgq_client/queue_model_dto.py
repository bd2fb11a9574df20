"""Typed records for the rows the pgq functions return.

Field names match the result columns of the SQL functions exactly; nullable columns are
Optional. Intervals decode to timedelta, timestamps to datetime.
"""

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field


class PgqRecord(BaseModel):
    """Base for decoded rows: immutable, unknown columns ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore")


class QueueInfo(PgqRecord):
    """One row of pgq.get_queue_info()."""

    queue_name: str = Field(..., description="Name of the queue")
    queue_ntables: int = Field(..., description="Number of rotated event tables")
    queue_cur_table: int = Field(..., description="Index of the active event table")
    queue_rotation_period: timedelta = Field(..., description="Table rotation period")
    queue_switch_time: datetime = Field(..., description="Time of the last table switch")
    queue_external_ticker: bool = Field(..., description="Ticks come from an external process")
    queue_ticker_paused: bool = Field(..., description="Ticker is paused for this queue")
    queue_ticker_max_count: int = Field(..., description="Tick after this many events")
    queue_ticker_max_lag: timedelta = Field(..., description="Tick at least this often when events exist")
    queue_ticker_idle_period: timedelta = Field(..., description="Tick at least this often when idle")
    ticker_lag: timedelta | None = Field(None, description="Time since the last tick")
    ev_per_sec: float | None = Field(None, description="Recent event rate")
    ev_new: int | None = Field(None, description="Events inserted since the last tick")
    last_tick_id: int | None = Field(None, description="ID of the last tick")


class ConsumerInfo(PgqRecord):
    """One row of pgq.get_consumer_info()."""

    queue_name: str = Field(..., description="Name of the queue")
    consumer_name: str = Field(..., description="Name of the consumer")
    lag: timedelta | None = Field(None, description="Age of the last processed tick")
    last_seen: timedelta | None = Field(None, description="Time since the consumer last finished a batch")
    last_tick: int | None = Field(None, description="Last acknowledged tick")
    current_batch: int | None = Field(None, description="Open batch, if any")
    next_tick: int | None = Field(None, description="Upper tick of the open batch")
    pending_events: int | None = Field(None, description="Events not yet consumed")


class BatchInfo(PgqRecord):
    """Row of pgq.get_batch_info()."""

    queue_name: str
    consumer_name: str
    batch_start: datetime
    batch_end: datetime
    prev_tick_id: int
    tick_id: int
    lag: timedelta
    seq_start: int
    seq_end: int


class NextBatchInfo(PgqRecord):
    """Row of pgq.next_batch_info() / pgq.next_batch_custom().

    Every field is None when no batch is available.
    """

    batch_id: int | None = None
    cur_tick_id: int | None = None
    prev_tick_id: int | None = None
    cur_tick_time: datetime | None = None
    prev_tick_time: datetime | None = None
    cur_tick_event_seq: int | None = None
    prev_tick_event_seq: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.batch_id is None


class Event(PgqRecord):
    """One event of a batch, as returned by pgq.get_batch_events() and the batch cursor."""

    ev_id: int = Field(..., description="Event ID")
    ev_time: datetime = Field(..., description="Insertion time")
    ev_txid: int = Field(..., description="ID of the inserting transaction")
    ev_retry: int | None = Field(None, description="Retry count, None if never retried")
    ev_type: str | None = Field(None, description="User-specified event type")
    ev_data: str | None = Field(None, description="User payload")
    ev_extra1: str | None = None
    ev_extra2: str | None = None
    ev_extra3: str | None = None
    ev_extra4: str | None = None

    @property
    def extra(self) -> list[str | None]:
        return [self.ev_extra1, self.ev_extra2, self.ev_extra3, self.ev_extra4]
