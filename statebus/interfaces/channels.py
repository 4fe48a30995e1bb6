"""Command and notification channel definitions."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from statebus.interfaces.schema import EMPTY_SCHEMA, PayloadSchema


class ChannelKind(Enum):
    """Categories of bus channels."""

    COMMAND = "command"            # Imperative request, one handler
    NOTIFICATION = "notification"  # Fact, any number of listeners


@dataclass(frozen=True)
class Channel:
    """Named bus channel with a payload schema."""

    name: str
    schema: PayloadSchema = EMPTY_SCHEMA
    description: str = ""

    kind = ChannelKind.NOTIFICATION

    def validate(self, payload: Any) -> Dict[str, Any]:
        """Validate a payload sent on this channel."""
        return self.schema.validate(payload, self.name)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class CommandChannel(Channel):
    """
    Channel carrying an imperative request ("do X").

    Exactly one service owns the handler of a command channel.
    """

    kind = ChannelKind.COMMAND


@dataclass(frozen=True)
class NotificationChannel(Channel):
    """
    Channel carrying a fact ("X happened").

    Any number of listeners may observe it.
    """

    kind = ChannelKind.NOTIFICATION


# Lifecycle notifications emitted by the registries
SERVICES_INITIALIZED = NotificationChannel(
    "services_initialized",
    PayloadSchema.of(services=list),
    "All services ran initialize()",
)

COMPONENTS_MOUNTED = NotificationChannel(
    "components_mounted",
    PayloadSchema.of(components=list),
    "All components were mounted",
)
