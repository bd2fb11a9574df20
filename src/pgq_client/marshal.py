"""Argument encoding and row decoding for the pgq SQL functions.

Operations that map to several SQL call shapes (optional extra fields, optional filters,
one queue or all queues, ...) are resolved once into a call variant: a frozen model that
carries its SQL text, how its result is fetched, and its parameters in positional order.
The factory functions below pick the variant and validate caller input before anything
reaches the adapter.
"""

from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Any, ClassVar, Literal, TypeVar

from pydantic import BaseModel, ConfigDict

from pgq_client.adapter_base import AbstractAdapter
from pgq_client.exceptions import PgqValidationError

EXTRA_FIELD_COUNT = 4

R = TypeVar("R", bound=BaseModel)


def pad_extra(extra: Sequence[str | None]) -> list[str | None]:
    """Return the extra fields padded with None to exactly four slots."""
    extra = list(extra)
    if len(extra) > EXTRA_FIELD_COUNT:
        raise PgqValidationError(f"extra array should have size {EXTRA_FIELD_COUNT} or less, got {len(extra)}")
    return extra + [None] * (EXTRA_FIELD_COUNT - len(extra))


def render_interval(value: timedelta | int | float | str | None) -> str | None:
    """Render a duration as a PostgreSQL interval literal.

    timedelta(hours=5, minutes=25, seconds=30) -> "05:25:30"; 90 -> "90 seconds".
    Strings are taken to be interval literals already ("05:25:30", "5 hours").
    """
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        raise PgqValidationError(f"Not a duration: {value!r}")
    if isinstance(value, (int, float)):
        if value < 0:
            raise PgqValidationError(f"Duration must not be negative: {value!r}")
        return f"{value} seconds"
    if isinstance(value, timedelta):
        if value < timedelta(0):
            raise PgqValidationError(f"Duration must not be negative: {value!r}")
        hours, rest = divmod(value.seconds, 3600)
        minutes, seconds = divmod(rest, 60)
        text = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
        if value.microseconds:
            text += f".{value.microseconds:06d}"
        if value.days:
            text = f"{value.days} days {text}"
        return text
    raise PgqValidationError(f"Not a duration: {value!r}")


def as_flag(value: Any) -> bool:
    """Turn a pgq integer result code (0/1, or a count) into a boolean."""
    if value is None:
        return False
    return int(value) > 0


def quote_ident(name: str) -> str:
    """Quote an SQL identifier (cursor names for FETCH/CLOSE)."""
    return '"' + name.replace('"', '""') + '"'


def decode_row(model: type[R], row: dict[str, Any] | None) -> R | None:
    if row is None:
        return None
    return model.model_validate(row)


def decode_rows(model: type[R], rows: Sequence[dict[str, Any]]) -> list[R]:
    return [model.model_validate(row) for row in rows]


class SqlCall(BaseModel):
    """One concrete pgq function call.

    Subclasses declare ``sql`` and ``fetch``; their fields, in declaration order, are the
    positional parameters.
    """

    model_config = ConfigDict(frozen=True)

    sql: ClassVar[str]
    fetch: ClassVar[Literal["all", "one", "value"]] = "value"

    def params(self) -> tuple:
        return tuple(getattr(self, name) for name in type(self).model_fields)

    def run(self, adapter: AbstractAdapter) -> Any:
        if self.fetch == "all":
            return adapter.select_all(self.sql, *self.params())
        if self.fetch == "one":
            return adapter.select_one(self.sql, *self.params())
        return adapter.select_value(self.sql, *self.params())


# insert_event


class InsertEvent(SqlCall):
    sql = "SELECT pgq.insert_event(%s, %s, %s)"

    queue_name: str
    ev_type: str | None
    ev_data: str | None


class InsertEventWithExtra(InsertEvent):
    sql = "SELECT pgq.insert_event(%s, %s, %s, %s, %s, %s, %s)"

    ev_extra1: str | None = None
    ev_extra2: str | None = None
    ev_extra3: str | None = None
    ev_extra4: str | None = None


def insert_event_call(
    queue_name: str,
    ev_type: str | None,
    ev_data: str | None,
    extra: Sequence[str | None] | None = None,
) -> InsertEvent:
    """Pick the 3-argument form when no extra fields are given, the 7-argument form otherwise."""
    if extra is None:
        return InsertEvent(queue_name=queue_name, ev_type=ev_type, ev_data=ev_data)
    extra1, extra2, extra3, extra4 = pad_extra(extra)
    return InsertEventWithExtra(
        queue_name=queue_name,
        ev_type=ev_type,
        ev_data=ev_data,
        ev_extra1=extra1,
        ev_extra2=extra2,
        ev_extra3=extra3,
        ev_extra4=extra4,
    )


# get_queue_info


class AllQueuesInfo(SqlCall):
    sql = "SELECT * FROM pgq.get_queue_info()"
    fetch = "all"


class OneQueueInfo(SqlCall):
    sql = "SELECT * FROM pgq.get_queue_info(%s)"
    fetch = "one"

    queue_name: str


def queue_info_query(queue_name: str | None = None) -> AllQueuesInfo | OneQueueInfo:
    if queue_name is None:
        return AllQueuesInfo()
    return OneQueueInfo(queue_name=queue_name)


# get_consumer_info


class AllConsumersInfo(SqlCall):
    sql = "SELECT * FROM pgq.get_consumer_info()"
    fetch = "all"


class QueueConsumersInfo(SqlCall):
    sql = "SELECT * FROM pgq.get_consumer_info(%s)"
    fetch = "all"

    queue_name: str


class OneConsumerInfo(SqlCall):
    sql = "SELECT * FROM pgq.get_consumer_info(%s, %s)"
    fetch = "one"

    queue_name: str
    consumer_name: str


def consumer_info_query(
    queue_name: str | None = None,
    consumer_name: str | None = None,
) -> AllConsumersInfo | QueueConsumersInfo | OneConsumerInfo:
    if queue_name is None:
        if consumer_name is not None:
            raise PgqValidationError("queue_name must be provided if consumer_name is provided")
        return AllConsumersInfo()
    if consumer_name is None:
        return QueueConsumersInfo(queue_name=queue_name)
    return OneConsumerInfo(queue_name=queue_name, consumer_name=consumer_name)


# get_batch_cursor


class BatchCursor(SqlCall):
    sql = "SELECT * FROM pgq.get_batch_cursor(%s, %s, %s)"
    fetch = "all"

    batch_id: int
    cursor_name: str
    quick_limit: int


class FilteredBatchCursor(BatchCursor):
    sql = "SELECT * FROM pgq.get_batch_cursor(%s, %s, %s, %s)"

    extra_where: str


def batch_cursor_call(
    batch_id: int,
    cursor_name: str,
    quick_limit: int,
    extra_where: str | None = None,
) -> BatchCursor:
    if extra_where is None:
        return BatchCursor(batch_id=batch_id, cursor_name=cursor_name, quick_limit=quick_limit)
    return FilteredBatchCursor(
        batch_id=batch_id,
        cursor_name=cursor_name,
        quick_limit=quick_limit,
        extra_where=extra_where,
    )


# event_retry


class EventRetryAt(SqlCall):
    sql = "SELECT pgq.event_retry(%s, %s, %s::timestamptz)"

    batch_id: int
    event_id: int
    retry_time: datetime | str


class EventRetryAfter(SqlCall):
    sql = "SELECT pgq.event_retry(%s, %s, %s::integer)"

    batch_id: int
    event_id: int
    retry_seconds: int


def event_retry_call(
    batch_id: int,
    event_id: int,
    retry_time: datetime | str | None = None,
    retry_seconds: int | None = None,
) -> EventRetryAt | EventRetryAfter:
    """Exactly one of retry_time and retry_seconds must be given."""
    if retry_time is not None and retry_seconds is not None:
        raise PgqValidationError("Only one of retry_time and retry_seconds may be provided")
    if retry_time is not None:
        return EventRetryAt(batch_id=batch_id, event_id=event_id, retry_time=retry_time)
    if retry_seconds is not None:
        return EventRetryAfter(batch_id=batch_id, event_id=event_id, retry_seconds=retry_seconds)
    raise PgqValidationError("One of retry_time and retry_seconds must be provided")


# ticker


class CheckTick(SqlCall):
    sql = "SELECT pgq.ticker(%s)"

    queue_name: str


class ExternalTick(SqlCall):
    sql = "SELECT pgq.ticker(%s, %s::bigint)"

    queue_name: str
    tick_id: int


class ExternalTickAt(SqlCall):
    sql = "SELECT pgq.ticker(%s, %s::bigint, %s::timestamptz, %s::bigint)"

    queue_name: str
    tick_id: int
    tick_time: datetime | str
    event_seq: int


def ticker_call(
    queue_name: str,
    tick_id: int | None = None,
    tick_time: datetime | str | None = None,
    event_seq: int | None = None,
) -> CheckTick | ExternalTick | ExternalTickAt:
    if tick_id is None:
        if tick_time is not None or event_seq is not None:
            raise PgqValidationError("tick_time and event_seq require tick_id")
        return CheckTick(queue_name=queue_name)
    if tick_time is None and event_seq is None:
        return ExternalTick(queue_name=queue_name, tick_id=tick_id)
    if tick_time is None or event_seq is None:
        raise PgqValidationError("tick_time and event_seq must be provided together")
    return ExternalTickAt(queue_name=queue_name, tick_id=tick_id, tick_time=tick_time, event_seq=event_seq)
