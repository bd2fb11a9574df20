"""Administer a queue.

CLI that creates, drops, configures or reports on the queue with the given name.
"""

import click
from icecream import ic

from pgq_client.adapter_psycopg import PsycopgAdapter as QueueRepository
from pgq_client.api import PgqAPI
from pgq_client.cli.common import configure_logging, get_dsn

ACTIONS = ("create", "status", "drop", "config", "table")


@click.command()
@click.option("--queue-name", type=str, required=True, help="The name of the queue")
@click.option("--dsn", type=str, required=False, help="The DSN of the database to use")
@click.option("--action", type=str, required=True, help=f"The action to perform: {', '.join(ACTIONS)}")
@click.option("--force", is_flag=True, default=False, help="drop: also drop registered consumers")
@click.option("--param", type=str, required=False, help="config: the parameter name, e.g. ticker_max_count")
@click.option("--value", type=str, required=False, help="config: the parameter value")
def main(queue_name: str, dsn: str, action: str, force: bool, param: str, value: str):
    """Create, inspect, configure or drop the specified queue."""
    click.echo(f"Queue {queue_name} {action}")
    dsn = get_dsn(dsn)
    configure_logging()

    queue_repo = QueueRepository(dsn=dsn)
    try:
        api = PgqAPI(queue_repo)
        match action:
            case "create":
                if api.create_queue(queue_name):
                    click.echo(f"Queue {queue_name} created")
                else:
                    click.echo(f"Queue {queue_name} already exists")
                return
            case "status":
                info = api.get_queue_info(queue_name)
                ic(info)
                return info
            case "drop":
                api.drop_queue(queue_name, force=force)
                click.echo(f"Queue {queue_name} dropped")
                return
            case "config":
                if not param or value is None:
                    raise click.ClickException("config requires --param and --value")
                api.set_queue_config(queue_name, param, value)
                click.echo(f"Queue {queue_name} {param} = {value}")
                return
            case "table":
                click.echo(api.current_event_table(queue_name))
                return
            case _:
                raise click.ClickException(f"Invalid action: {action}. Valid actions are: {', '.join(ACTIONS)}")
    finally:
        queue_repo.close()


if __name__ == "__main__":
    main()
