"""Tick creation.

Ticks split the event stream into batches. Normally pgqd ticks every queue on its own
schedule; these calls are for setups without it and for tests.

Parallel pgq.ticker() calls on the same queue are unsafe and cannot be guarded with a
lock, since the snapshot is taken before locking. Callers must make sure only one
process ticks a given queue.
"""

import time
from datetime import datetime

from pgq_client.adapter_base import AdapterBound
from pgq_client.config import get_settings
from pgq_client.marshal import ticker_call


class Ticker(AdapterBound):
    """Check, force and insert ticks."""

    def force_tick(self, queue_name: str) -> int:
        """pgq.force_tick(1): make the next ticker run tick the queue.

        Returns the current last tick ID. Meant to be polled with a delay until the
        returned ID changes (see wait_for_tick).
        """
        return self.adapter.select_value("SELECT pgq.force_tick(%s)", queue_name)

    def ticker(
        self,
        queue_name: str,
        tick_id: int | None = None,
        tick_time: datetime | str | None = None,
        event_seq: int | None = None,
    ) -> int | None:
        """pgq.ticker(1/2/4).

        Without ``tick_id``: tick the queue if a tick is due, returning the new tick ID
        or None. With ``tick_id``: insert an externally numbered tick, optionally with
        its timestamp and event sequence.
        """
        tick = ticker_call(queue_name, tick_id, tick_time, event_seq).run(self.adapter)
        if tick is not None:
            self.logger.debug("Tick %s on %s", tick, queue_name)
        return tick

    def wait_for_tick(
        self,
        queue_name: str,
        timeout: float | None = None,
        poll_interval: float | None = None,
    ) -> int | None:
        """Force a new tick on the queue and wait until it exists.

        Returns the new last tick ID, or None when no tick appeared within ``timeout``
        seconds. Defaults come from settings.

        Calls pgq.ticker() itself on every poll: do not use when pgqd ticks this queue,
        since that makes two tickers run on it in parallel.
        """
        settings = get_settings()
        timeout = settings.tick_timeout if timeout is None else timeout
        poll_interval = settings.tick_poll_interval if poll_interval is None else poll_interval

        start_tick = self.force_tick(queue_name)
        deadline = time.monotonic() + timeout
        while True:
            tick = self.ticker(queue_name)
            if tick is not None and tick != start_tick:
                self.logger.info("Queue %s ticked: %s -> %s", queue_name, start_tick, tick)
                return tick
            if time.monotonic() >= deadline:
                self.logger.warning("No tick on %s after %ss", queue_name, timeout)
                return None
            time.sleep(poll_interval)
            self.force_tick(queue_name)
