"""Base handler interface for queue events.

Each queue processed by the process CLI has a handler module (``handlers.<queue_name>``)
that defines a Handler class with validate and handle. Both receive one Event.
"""

from abc import ABC, abstractmethod

from pgq_client.queue_model_dto import Event


class BaseHandler(ABC):
    """Abstract base for per-queue event handlers.

    Raise from validate or handle to have the event retried later. The same event can be
    delivered more than once (retries, crashes before finish), so handle should be
    idempotent on ev_id or on the payload.
    """

    @abstractmethod
    def __init__(self) -> None:
        """Initialize the handler (e.g. load config, tokens)."""
        pass

    @abstractmethod
    def validate(self, event: Event) -> None:
        """Check the event before handling; raise if invalid."""
        pass

    @abstractmethod
    def handle(self, event: Event) -> None:
        """Process the event. Raise on failure to schedule a retry."""
        pass
