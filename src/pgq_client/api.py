"""Wrapping PgQ SQL functions.

PgqAPI bundles administration, producing, consuming and ticking over one adapter.
See https://pgq.github.io/extension/pgq/files/external-sql.html

    with PsycopgAdapter(dsn) as adapter:
        api = PgqAPI(adapter)
        api.create_queue("orders")
        api.register_consumer("orders", "billing")
        api.insert_event("orders", "created", '{"id": 1}')
"""

from pgq_client.admin import QueueAdmin
from pgq_client.consumer import Consumer
from pgq_client.producer import Producer
from pgq_client.ticker import Ticker


class PgqAPI(QueueAdmin, Producer, Consumer, Ticker):
    """All pgq operations, sharing the adapter given to the constructor."""
