"""Helpers shared by the command line tools."""

import logging
import os

import click
import dotenv

from pgq_client.config import get_settings


def get_dsn(dsn: str | None) -> str:
    """Return the DSN from the option, else from PGQ_DSN (loading .env when present)."""
    if dsn:
        return dsn
    if os.path.exists(".env"):
        dotenv.load_dotenv()
    dsn = os.getenv("PGQ_DSN")
    if not dsn:
        raise click.ClickException("No DSN provided and PGQ_DSN environment variable is not set")
    return dsn


def configure_logging() -> None:
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
