"""
Ports (interfaces) for the external collaborators of the core.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from .models import LogEntry, Notification
from .notifications import NotificationDecision

T = TypeVar("T")


class EventLedger(ABC):
    """
    Port for the ordered, append-only sleep event log.

    Implementations:
        - CsvEventLedger: A local CSV file with the spreadsheet's columns.
    """

    @abstractmethod
    async def append(self, entry: LogEntry) -> LogEntry:
        """
        Append an entry and return it as stored (with its duration filled in
        when it closes a session). Durable before returning.
        """
        pass

    @abstractmethod
    async def replace_last(self, entry: LogEntry) -> LogEntry:
        """
        Overwrite the most recent entry, keeping its start/stop role.
        """
        pass

    @abstractmethod
    async def read_all(self) -> list[LogEntry]:
        """
        Returns:
            Every entry, oldest first.
        """
        pass

    async def read_recent(self, count: int) -> list[LogEntry]:
        """
        Returns:
            The last ``count`` entries, oldest first.
        """
        if count <= 0:
            return []
        entries = await self.read_all()
        return entries[-count:]

    async def read_last(self) -> LogEntry | None:
        recent = await self.read_recent(1)
        return recent[0] if recent else None


class DocumentStore(ABC, Generic[T]):
    """
    Port for a persisted list of records treated as a single document.

    Absence of the document reads as an empty list.
    """

    @abstractmethod
    async def read(self) -> list[T]:
        pass

    @abstractmethod
    async def write(self, items: list[T]) -> None:
        pass


class ReasoningProvider(ABC):
    """
    Port for the language model that judges whether a notification is worth
    sending and drafts its text.

    Implementations:
        - AnthropicReasoningProvider: Anthropic Messages API over httpx.
    """

    @abstractmethod
    async def decide(self, prompt: str) -> NotificationDecision:
        """
        Raises:
            ReasoningError: On network, API or parse failure.
        """
        pass


class DeliveryTransport(ABC):
    """
    Port for a best-effort push channel.

    Implementations:
        - PushbulletTransport
        - WebPushTransport
    """

    name: str = "transport"

    @abstractmethod
    async def send(self, notification: Notification, extra: dict | None = None) -> None:
        """
        Raises:
            DeliveryError: When the notification could not be delivered.
        """
        pass
