"""Command and notification routing on top of the event bus."""

from typing import Any, Callable, Dict, Optional
import logging

from statebus.core.event_bus import EventBus, Unsubscribe
from statebus.core.exceptions import (
    ChannelCollisionError,
    CommandOwnershipError,
    ReducerPurityError,
    UnhandledCommandError,
)
from statebus.core.store import Store
from statebus.interfaces.channels import (
    Channel,
    ChannelKind,
    CommandChannel,
    NotificationChannel,
)


UNHANDLED_POLICIES = ("warn", "ignore", "raise")


class ChannelRouter:
    """
    Typed layer over the event bus.

    Commands and notifications share the bus, but a channel name belongs to
    exactly one kind: the first declaration wins and any later use of the
    same name as the other kind raises ChannelCollisionError.

    - Commands have exactly one handler (the owning service).
    - Notifications have any number of listeners.
    - Payloads are validated against the channel schema before delivery.

    Usage:
        router = ChannelRouter(bus, store)
        router.on_command(SELECT_ITEM, handler, owner="selection")
        router.send_command(SELECT_ITEM, {"item_id": "logs"})
    """

    def __init__(self, bus: EventBus, store: Store, unhandled: str = "warn"):
        """
        Initialize the router.

        Args:
            bus: Event bus carrying both channel kinds
            store: Store, consulted to reject commands sent from reducers
            unhandled: What to do with a command nobody handles:
                "warn" (log a warning), "ignore" or "raise"
        """
        if unhandled not in UNHANDLED_POLICIES:
            raise ValueError(f"Unknown unhandled-command policy: {unhandled!r}")

        self._bus = bus
        self._store = store
        self._unhandled = unhandled
        self._kinds: Dict[str, ChannelKind] = {}
        self._owners: Dict[str, str] = {}
        self._logger = logging.getLogger("statebus.router")

    @property
    def bus(self) -> EventBus:
        return self._bus

    # === Declarations ===

    def declare(self, *channels: Channel) -> None:
        """
        Declare channels up front.

        Raises:
            ChannelCollisionError: If a name is already declared as the other kind
        """
        for channel in channels:
            existing = self._kinds.get(channel.name)
            if existing is None:
                self._kinds[channel.name] = channel.kind
            elif existing is not channel.kind:
                raise ChannelCollisionError(channel.name, existing.value, channel.kind.value)

    def kind_of(self, name: str) -> Optional[ChannelKind]:
        """Get the declared kind of a channel name."""
        return self._kinds.get(name)

    def owner_of(self, channel: CommandChannel) -> Optional[str]:
        """Get the name of the service handling a command."""
        return self._owners.get(channel.name)

    # === Commands ===

    def on_command(
        self,
        channel: CommandChannel,
        handler: Callable[[Dict[str, Any]], Any],
        owner: str
    ) -> Unsubscribe:
        """
        Claim a command channel.

        Args:
            channel: Command channel
            handler: Called with the validated payload
            owner: Name of the claiming service

        Returns:
            Callable releasing the claim

        Raises:
            CommandOwnershipError: If the channel already has an owner
        """
        _require(channel, CommandChannel, "on_command")
        self.declare(channel)

        current = self._owners.get(channel.name)
        if current is not None:
            raise CommandOwnershipError(channel.name, current, owner)

        self._owners[channel.name] = owner
        unsubscribe = self._bus.on(channel.name, handler)
        self._logger.debug(f"Command {channel.name} handled by {owner}")

        def release() -> None:
            unsubscribe()
            if self._owners.get(channel.name) == owner:
                del self._owners[channel.name]

        return release

    def send_command(self, channel: CommandChannel, payload: Any = None) -> bool:
        """
        Send a command to its owning service.

        Args:
            channel: Command channel
            payload: Mapping matching the channel schema

        Returns:
            True if a handler received the command

        Raises:
            PayloadValidationError: If the payload does not match the schema
            ReducerPurityError: If called while a reducer is running
            UnhandledCommandError: If nobody handles it and policy is "raise"
        """
        _require(channel, CommandChannel, "send_command")
        if self._store.is_reducing:
            raise ReducerPurityError("send commands")

        self.declare(channel)
        validated = channel.validate(payload)

        if not self._bus.has_listeners(channel.name):
            if self._unhandled == "raise":
                raise UnhandledCommandError(channel.name)
            if self._unhandled == "warn":
                self._logger.warning(f"Unhandled command: {channel.name} (no service owns it)")
            return False

        self._bus.emit(channel.name, validated)
        return True

    # === Notifications ===

    def on_notification(
        self,
        channel: NotificationChannel,
        listener: Callable[[Dict[str, Any]], Any]
    ) -> Unsubscribe:
        """
        Listen to a notification channel.

        Returns:
            Callable removing the listener
        """
        _require(channel, NotificationChannel, "on_notification")
        self.declare(channel)
        return self._bus.on(channel.name, listener)

    def notify(self, channel: NotificationChannel, payload: Any = None) -> int:
        """
        Emit a notification.

        Args:
            channel: Notification channel
            payload: Mapping matching the channel schema

        Returns:
            Number of listeners invoked
        """
        _require(channel, NotificationChannel, "notify")
        self.declare(channel)
        return self._bus.emit(channel.name, channel.validate(payload))


def _require(channel: Any, expected: type, operation: str) -> None:
    if not isinstance(channel, expected):
        raise TypeError(
            f"{operation}() expects a {expected.__name__}, got {type(channel).__name__}"
        )
