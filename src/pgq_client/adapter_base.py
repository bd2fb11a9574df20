"""Abstract base for SQL execution adapters.

The pgq functions are reached only through this interface, so any driver that can run
a parameterized statement and hand back dict rows can back the client. Implementations
(e.g. PsycopgAdapter) provide the connection handling.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any


class AbstractAdapter(ABC):
    """Abstract base class for SQL execution.

    Statements use ``%s`` positional placeholders. Rows are dicts keyed by column name,
    values typed the way the driver decodes them. Errors are the driver's own.
    """

    @abstractmethod
    def execute(self, sql: str, *params: Any) -> None:
        """Execute a statement for its side effects."""
        pass

    @abstractmethod
    def select_all(self, sql: str, *params: Any) -> list[dict[str, Any]]:
        """Execute a statement and return every result row."""
        pass

    def select_one(self, sql: str, *params: Any) -> dict[str, Any] | None:
        """Execute a statement and return the first result row, or None."""
        rows = self.select_all(sql, *params)
        return rows[0] if rows else None

    @abstractmethod
    def select_value(self, sql: str, *params: Any) -> Any:
        """Execute a statement and return the first column of the first row."""
        pass

    @abstractmethod
    def select_values(self, sql: str, *params: Any) -> list[Any]:
        """Execute a statement and return the first column of every row."""
        pass


class AdapterBound:
    """Base for the API components; holds the adapter every call goes through."""

    def __init__(self, adapter: AbstractAdapter) -> None:
        self.adapter = adapter
        self.logger = logging.getLogger(type(self).__module__)
