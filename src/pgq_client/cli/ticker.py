"""Tick a queue.

CLI for setups without pgqd: check-and-tick, force a tick, or force and wait for it.
Do not run it against a queue that another ticker is already ticking.
"""

import click

from pgq_client.adapter_psycopg import PsycopgAdapter as QueueRepository
from pgq_client.api import PgqAPI
from pgq_client.cli.common import configure_logging, get_dsn

ACTIONS = ("tick", "force", "wait")


@click.command()
@click.option("--queue-name", type=str, required=True, help="The name of the queue to tick")
@click.option("--dsn", type=str, required=False, help="The DSN of the database to use")
@click.option("--action", type=str, default="tick", help=f"The action to perform: {', '.join(ACTIONS)}")
@click.option("--timeout", type=float, required=False, help="wait: seconds to wait for the tick")
def main(queue_name: str, dsn: str, action: str, timeout: float | None):
    """Tick the specified queue."""
    dsn = get_dsn(dsn)
    configure_logging()

    queue_repo = QueueRepository(dsn=dsn)
    try:
        api = PgqAPI(queue_repo)
        match action:
            case "tick":
                tick_id = api.ticker(queue_name)
                click.echo(f"Tick: {tick_id}" if tick_id is not None else "No tick needed")
                return tick_id
            case "force":
                tick_id = api.force_tick(queue_name)
                click.echo(f"Tick forced, last tick: {tick_id}")
                return tick_id
            case "wait":
                tick_id = api.wait_for_tick(queue_name, timeout=timeout)
                if tick_id is None:
                    raise click.ClickException(f"No tick on {queue_name} before timeout")
                click.echo(f"Tick: {tick_id}")
                return tick_id
            case _:
                raise click.ClickException(f"Invalid action: {action}. Valid actions are: {', '.join(ACTIONS)}")
    finally:
        queue_repo.close()


if __name__ == "__main__":
    main()
