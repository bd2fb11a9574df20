"""Enqueue an event to a queue.

CLI that creates the queue if needed and inserts a JSON event into it.
"""

import json

import click

from pgq_client.adapter_psycopg import PsycopgAdapter as QueueRepository
from pgq_client.api import PgqAPI
from pgq_client.cli.common import configure_logging, get_dsn
from pgq_client.exceptions import PgqValidationError
from pgq_client.marshal import pad_extra


@click.command()
@click.option(
    "--queue-name",
    type=str,
    required=True,
    help="The name of the queue to enqueue the event to",
)
@click.option("--message", type=str, required=True, help="The event payload (JSON)")
@click.option("--type", "ev_type", type=str, default="json", help="The event type")
@click.option("--extra", type=str, multiple=True, help="Extra field, up to 4, can be used multiple times")
@click.option("--dsn", type=str, required=False, help="The DSN of the database to use")
def main(queue_name: str, message: str, ev_type: str, extra: tuple[str, ...], dsn: str) -> None:
    """Insert a JSON event into the specified queue; creates the queue if it does not exist."""
    click.echo(f"queue-name: {queue_name}")
    click.echo(f"message: {message}")
    dsn = get_dsn(dsn)
    configure_logging()

    try:
        data = json.loads(message)
    except json.JSONDecodeError as err:
        raise click.ClickException(f"Invalid JSON: {message}") from err

    # reject bad extras before the queue gets created
    try:
        pad_extra(list(extra))
    except PgqValidationError as e:
        raise click.ClickException(str(e)) from e

    queue_repo = QueueRepository(dsn=dsn)
    try:
        api = PgqAPI(queue_repo)
        try:
            if api.create_queue(queue_name):
                click.echo(f"Queue {queue_name} created")
        except Exception as e:
            raise click.ClickException(f"Error creating queue: {e}") from e

        try:
            event_id = api.insert_event(queue_name, ev_type, json.dumps(data), extra=list(extra) or None)
            click.echo(f"Event enqueued with ID: {event_id}")
        except PgqValidationError as e:
            raise click.ClickException(str(e)) from e
        except Exception as e:
            raise click.ClickException(f"Error: {e}") from e
    finally:
        queue_repo.close()


if __name__ == "__main__":
    """Entry point for the enqueue CLI."""
    main()
