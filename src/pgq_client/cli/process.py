"""Process batches of events from one or more queues.

This module provides a CLI that claims batches for a consumer, validates and handles each
event via per-queue handlers, retries the events that fail, and finishes the batch.
"""

import importlib
import os
import sys
import time
import traceback
from typing import Any

import click

from pgq_client.adapter_psycopg import PsycopgAdapter as QueueRepository
from pgq_client.api import PgqAPI
from pgq_client.cli.common import configure_logging, get_dsn
from pgq_client.config import get_settings
from pgq_client.handlers.base import BaseHandler
from pgq_client.queue_model_dto import Event


def get_handlers(
    queue_names: list[str],
    queues: list[str],
    validate_only: bool = False,
    handlers_path: list[str] | None = None,
) -> dict[str, BaseHandler]:
    """Load and return the handler instance for each queue name.

    Args:
        queue_names: Queue names to load handlers for.
        queues: List of queue names that exist in the database.
        validate_only: If True, require each handler to have a validate method.
        handlers_path: Directories that contain a ``handlers`` package.
    Returns:
        Mapping of queue name to handler instance.

    Raises:
        click.ClickException: If a queue does not exist or (when validate_only)
            a handler has no validate method.
    """
    handlers: dict[str, BaseHandler] = {}
    for path in handlers_path or []:
        if os.path.exists(path) and path not in sys.path:
            sys.path.append(path)
    for q in queue_names:
        if q not in queues:
            raise click.ClickException(f"Queue {q} does not exist")
        handler_module = importlib.import_module(f"handlers.{q}")
        handler = handler_module.Handler()
        handlers[q] = handler
        if not hasattr(handler, "validate") and validate_only:
            raise click.ClickException(f"No validator for queue: {q}")
    return handlers


def validate_event(event: Event, handlers: dict[str, Any], q: str) -> None:
    """Run the queue handler's validate method on the event, if present."""
    if hasattr(handlers[q], "validate"):
        handlers[q].validate(event)


def handle_event(event: Event, handlers: dict[str, Any], q: str) -> None:
    """Validate and then handle the event with the queue's handler."""
    validate_event(event, handlers, q)
    handlers[q].handle(event)


def process_batch(
    api: PgqAPI,
    batch_id: int,
    handlers: dict[str, Any],
    q: str,
    retry_seconds: int,
    validate_only: bool = False,
) -> tuple[int, int]:
    """Run every event of the batch through the handler.

    Failed events are put into the retry queue. The batch is finished afterwards, except
    with validate_only, where it is left open so that the next run sees it again.

    Returns:
        (handled, retried) event counts.
    """
    handled = retried = 0
    for event in api.get_batch_events(batch_id):
        if validate_only:
            try:
                validate_event(event, handlers, q)
            except Exception as e:
                click.secho(f"Validation error: {e}", err=True, color=True, fg="red")
                click.secho(f"Stack trace: {traceback.format_exc()}", err=True, color=True, fg="red")
                click.secho(f"Event {event.ev_id}: {event.ev_data}", err=True, color=True, fg="red")
            continue
        try:
            handle_event(event, handlers, q)
            handled += 1
        except Exception as e:
            # Retry only this event so the rest of the batch can be finished.
            click.secho(f"Error handling event {event.ev_id}: {e}", err=True, color=True, fg="red")
            if api.event_retry(batch_id, event.ev_id, retry_seconds=retry_seconds):
                click.secho(f"Event {event.ev_id} scheduled for retry in {retry_seconds}s", color=True, fg="green")
            retried += 1

    if not validate_only:
        api.finish_batch(batch_id)
    return handled, retried


@click.command()
@click.option("--dsn", type=str, required=False, help="The DSN of the database to use")
@click.option("--consumer-name", type=str, required=True, help="The consumer to claim batches as")
@click.option(
    "--max-batches",
    type=int,
    default=100,
    help="Maximum number of batches to process per queue",
)
@click.option("--max-runtime", type=int, default=600, help="Maximum runtime per queue in seconds")
@click.option(
    "--retry-seconds",
    type=int,
    required=False,
    help="Delay in seconds before a failed event is delivered again (default PGQ_RETRY_SECONDS)",
)
@click.option(
    "--queue-names",
    type=str,
    required=True,
    multiple=True,
    help="The name of a queue to process events from, can be used multiple times",
)
@click.option(
    "--validate-only",
    is_flag=True,
    help="Only validate the events, do not handle them or finish the batch",
)
@click.option(
    "--handlers-path",
    type=str,
    required=True,
    help="The path to a directory with a handlers directory, multiple allowed",
    multiple=True,
)
def main(**kwargs: Any) -> None:
    """Process batches from the given queues.

    Registers the consumer on each queue if needed, then claims batches one at a time,
    validates and handles every event with the corresponding handler, retries failed
    events and finishes the batch. Stops on a queue when no batch is ready, or when
    max_batches or max_runtime is reached.

    Handlers must tolerate seeing the same event twice: if the process dies before the
    batch is finished, the whole batch is delivered again.
    """
    max_batches = kwargs["max_batches"]
    max_runtime = kwargs["max_runtime"]
    consumer_name = kwargs["consumer_name"]
    queue_names = list(kwargs["queue_names"])
    validate_only = kwargs["validate_only"]
    handlers_path = list(kwargs["handlers_path"])
    retry_seconds = kwargs["retry_seconds"]

    dsn = get_dsn(kwargs["dsn"])
    configure_logging()
    if retry_seconds is None:
        retry_seconds = get_settings().retry_seconds

    queue_repo = QueueRepository(dsn=dsn)
    try:
        api = PgqAPI(queue_repo)
        queues = api.list_queues()
        handlers = get_handlers(
            queue_names,
            queues,
            validate_only=validate_only,
            handlers_path=handlers_path,
        )
        for q in queue_names:
            if api.register_consumer(q, consumer_name):
                click.echo(f"Consumer {consumer_name} registered on {q}")

            # Cap runtime and batch count so we don't overrun and miss future jobs.
            queue_start_time = time.time()
            batch_count = 0
            while time.time() - queue_start_time < max_runtime and batch_count < max_batches:
                batch_id = api.next_batch(q, consumer_name)
                if batch_id is None:
                    break
                batch_count += 1
                handled, retried = process_batch(
                    api,
                    batch_id,
                    handlers,
                    q,
                    retry_seconds,
                    validate_only=validate_only,
                )
                click.echo(f"Batch {batch_id} on {q}: {handled} handled, {retried} retried")
                if validate_only:
                    break
    finally:
        queue_repo.close()


if __name__ == "__main__":
    main()
