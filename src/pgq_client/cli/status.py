"""Show the status of the queues.

CLI that prints the pgq version, queue info and consumer info, for one queue or all.
"""

import click
from icecream import ic

from pgq_client.adapter_psycopg import PsycopgAdapter as QueueRepository
from pgq_client.api import PgqAPI
from pgq_client.cli.common import configure_logging, get_dsn


def queue_exists(api: PgqAPI, queue_name: str) -> bool:
    """Return True if the given queue exists."""
    return queue_name in api.list_queues()


@click.command()
@click.option("--queue-name", type=str, required=False, help="Only show this queue")
@click.option("--dsn", type=str, required=False, help="The DSN of the database to use")
def main(queue_name: str | None, dsn: str) -> None:
    """Print queue and consumer info for the specified queue, or for all queues."""
    click.echo("Queue status")
    dsn = get_dsn(dsn)
    configure_logging()

    queue_repo = QueueRepository(dsn=dsn)
    try:
        api = PgqAPI(queue_repo)
        if queue_name is not None and not queue_exists(api, queue_name):
            raise click.ClickException(f"Queue {queue_name} does not exist")

        click.echo(f"pgq version: {api.version()}")
        ic(api.get_queue_info(queue_name))
        ic(api.get_consumer_info(queue_name))
    finally:
        queue_repo.close()


if __name__ == "__main__":
    main()
