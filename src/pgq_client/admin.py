"""Queue administration and metadata.

Wraps the pgq functions that create, drop and configure queues, and the ones that
report on queues, consumers and batches. Nothing is cached: every read re-queries.
"""

from pgq_client.adapter_base import AdapterBound
from pgq_client.marshal import as_flag, consumer_info_query, decode_row, decode_rows, queue_info_query
from pgq_client.queue_model_dto import BatchInfo, ConsumerInfo, QueueInfo


class QueueAdmin(AdapterBound):
    """Create, drop, configure and inspect queues."""

    def create_queue(self, queue_name: str) -> bool:
        """pgq.create_queue(1): create a new queue. Returns False when it already exists."""
        created = as_flag(self.adapter.select_value("SELECT pgq.create_queue(%s)", queue_name))
        if created:
            self.logger.info("Created queue %s", queue_name)
        return created

    def drop_queue(self, queue_name: str, force: bool = False) -> None:
        """pgq.drop_queue(2): drop the queue and all its tables.

        The backend refuses while consumers are registered unless ``force`` is set, and
        raises for an unknown queue.
        """
        self.adapter.select_value("SELECT pgq.drop_queue(%s, %s)", queue_name, force)
        self.logger.info("Dropped queue %s", queue_name)

    def set_queue_config(self, queue_name: str, param_name: str, param_value: str) -> None:
        """pgq.set_queue_config(3): set one configuration parameter, e.g. ``ticker_max_count``."""
        self.adapter.select_value(
            "SELECT pgq.set_queue_config(%s, %s, %s)",
            queue_name,
            param_name,
            param_value,
        )

    def get_queue_info(self, queue_name: str | None = None) -> QueueInfo | list[QueueInfo] | None:
        """pgq.get_queue_info(0/1).

        With a name returns that queue's record (None if the backend returns no row),
        otherwise the records of all queues.
        """
        query = queue_info_query(queue_name)
        result = query.run(self.adapter)
        if query.fetch == "all":
            return decode_rows(QueueInfo, result)
        return decode_row(QueueInfo, result)

    def list_queues(self) -> list[str]:
        """Return the names of all existing queues."""
        return self.adapter.select_values("SELECT queue_name FROM pgq.get_queue_info()")

    def current_event_table(self, queue_name: str) -> str:
        """pgq.current_event_table(1): name of the active event table of the queue."""
        return self.adapter.select_value("SELECT pgq.current_event_table(%s)", queue_name)

    def version(self) -> str:
        """pgq.version(0): version string of the pgq extension."""
        return self.adapter.select_value("SELECT pgq.version()")

    def get_batch_info(self, batch_id: int) -> BatchInfo | None:
        """pgq.get_batch_info(1): timing, lag and sequence range of a batch."""
        row = self.adapter.select_one("SELECT * FROM pgq.get_batch_info(%s)", batch_id)
        return decode_row(BatchInfo, row)

    def get_consumer_info(
        self,
        queue_name: str | None = None,
        consumer_name: str | None = None,
    ) -> ConsumerInfo | list[ConsumerInfo] | None:
        """pgq.get_consumer_info(0/1/2).

        No arguments: every consumer of every queue. Queue only: every consumer of that
        queue. Both: that one consumer (None if the backend returns no row).
        A consumer name without a queue name raises PgqValidationError.
        """
        query = consumer_info_query(queue_name, consumer_name)
        result = query.run(self.adapter)
        if query.fetch == "all":
            return decode_rows(ConsumerInfo, result)
        return decode_row(ConsumerInfo, result)
