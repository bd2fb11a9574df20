"""Event producer.

Events from one call are committed with the adapter's transaction. There is no
multi-event call; wrap repeated inserts in ``adapter.transaction()`` when they must
land together.
"""

from collections.abc import Sequence

from pgq_client.adapter_base import AdapterBound
from pgq_client.marshal import insert_event_call


class Producer(AdapterBound):
    """Insert events into a queue."""

    def insert_event(
        self,
        queue_name: str,
        ev_type: str | None,
        ev_data: str | None,
        extra: Sequence[str | None] | None = None,
    ) -> int:
        """pgq.insert_event(3/7): insert one event and return its ID.

        Args:
            queue_name: Name of the queue.
            ev_type: User-specified type for the event.
            ev_data: User data for the event.
            extra: Up to four extra text fields, padded with None. Longer raises
                PgqValidationError before the backend is called.
        """
        call = insert_event_call(queue_name, ev_type, ev_data, extra)
        event_id = call.run(self.adapter)
        self.logger.debug("Inserted event %s into %s", event_id, queue_name)
        return event_id
