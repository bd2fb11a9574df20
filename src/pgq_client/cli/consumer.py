"""Manage a consumer of a queue.

CLI that registers, unregisters or reports on one consumer.
"""

import click
from icecream import ic

from pgq_client.adapter_psycopg import PsycopgAdapter as QueueRepository
from pgq_client.api import PgqAPI
from pgq_client.cli.common import configure_logging, get_dsn

ACTIONS = ("register", "unregister", "info")


@click.command()
@click.option("--queue-name", type=str, required=True, help="The name of the queue")
@click.option("--consumer-name", type=str, required=True, help="The name of the consumer")
@click.option("--dsn", type=str, required=False, help="The DSN of the database to use")
@click.option("--action", type=str, required=True, help=f"The action to perform: {', '.join(ACTIONS)}")
@click.option("--tick-id", type=int, required=False, help="register: start from this tick instead of now")
def main(queue_name: str, consumer_name: str, dsn: str, action: str, tick_id: int | None):
    """Register, unregister or show the specified consumer."""
    click.echo(f"Consumer {consumer_name} on {queue_name} {action}")
    dsn = get_dsn(dsn)
    configure_logging()

    queue_repo = QueueRepository(dsn=dsn)
    try:
        api = PgqAPI(queue_repo)
        match action:
            case "register":
                if tick_id is None:
                    registered = api.register_consumer(queue_name, consumer_name)
                else:
                    registered = api.register_consumer_at(queue_name, consumer_name, tick_id)
                click.echo("Consumer registered" if registered else "Consumer already registered")
                return registered
            case "unregister":
                unregistered = api.unregister_consumer(queue_name, consumer_name)
                click.echo("Consumer unregistered" if unregistered else "Consumer not found")
                return unregistered
            case "info":
                info = api.get_consumer_info(queue_name, consumer_name)
                if info is None:
                    raise click.ClickException(f"Consumer {consumer_name} not found on {queue_name}")
                ic(info)
                return info
            case _:
                raise click.ClickException(f"Invalid action: {action}. Valid actions are: {', '.join(ACTIONS)}")
    finally:
        queue_repo.close()


if __name__ == "__main__":
    main()
