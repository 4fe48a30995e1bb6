"""Synchronous event bus for in-process publish/subscribe."""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
import logging

from statebus.core.exceptions import ListenerError


# Type alias for listeners
Listener = Callable[[Any], Any]

# Type alias for the handle returned by on()/subscribe()
Unsubscribe = Callable[[], None]

# Type alias for listener error reporting
ErrorHandler = Callable[[ListenerError], None]


@dataclass(eq=False)
class Registration:
    """One listener registration on a channel."""

    channel: str                # Channel name
    callback: Listener          # Listener function
    once: bool = False          # Remove after first delivery
    active: bool = True         # False once removed


class EventBus:
    """
    Central event bus for synchronous communication inside one process.

    Implements Pub/Sub on named channels with:
    - Delivery in registration order
    - Snapshot semantics (unsubscribing mid-emit never skips a listener)
    - Per-listener error isolation
    - Unsubscribe handles that remove exactly one registration

    Usage:
        bus = EventBus()

        # Subscribe
        unsubscribe = bus.on("ping", handler)

        # Publish
        bus.emit("ping", {"x": 1})

        # Unsubscribe
        unsubscribe()
    """

    def __init__(self, error_handler: Optional[ErrorHandler] = None):
        """
        Initialize the event bus.

        Args:
            error_handler: Called with a ListenerError when a listener raises.
                Defaults to logging the failure with its traceback.
        """
        self._channels: Dict[str, List[Registration]] = {}
        self._error_handler = error_handler or self._log_listener_error
        self._logger = logging.getLogger("statebus.event_bus")
        self._emit_count = 0

    @property
    def emit_count(self) -> int:
        """Total number of emits that reached at least one listener."""
        return self._emit_count

    def on(self, channel: str, listener: Listener) -> Unsubscribe:
        """
        Subscribe a listener to a channel.

        Duplicate listeners are accepted and delivered once per registration.

        Args:
            channel: Channel name
            listener: Callable receiving the emitted payload

        Returns:
            Callable removing this registration only (idempotent)
        """
        return self._add(Registration(channel=channel, callback=listener))

    def once(self, channel: str, listener: Listener) -> Unsubscribe:
        """
        Subscribe a listener that is removed after its first delivery.

        Args:
            channel: Channel name
            listener: Callable receiving the emitted payload

        Returns:
            Callable removing the registration if it has not fired yet
        """
        return self._add(Registration(channel=channel, callback=listener, once=True))

    def off(self, channel: str, listener: Listener) -> bool:
        """
        Remove the first registration of a listener from a channel.

        Args:
            channel: Channel name
            listener: Listener to remove (compared by equality)

        Returns:
            True if a registration was removed
        """
        for registration in self._channels.get(channel, []):
            if registration.callback == listener:
                self._remove(registration)
                return True
        return False

    def emit(self, channel: str, payload: Any = None) -> int:
        """
        Deliver a payload to every listener of a channel.

        The listener list is snapshotted before delivery. A listener removed
        during this emit is still called if it was in the snapshot, and one
        added during this emit is not called until the next one.

        Args:
            channel: Channel name
            payload: Value passed unchanged to every listener

        Returns:
            Number of listeners called; a once listener cancelled earlier in
            this emit is skipped and not counted
        """
        registrations = self._channels.get(channel)
        if not registrations:
            return 0

        snapshot = list(registrations)
        self._emit_count += 1
        invoked = 0
        for registration in snapshot:
            if registration.once:
                if not registration.active:
                    continue
                self._remove(registration)
            invoked += 1
            try:
                registration.callback(payload)
            except Exception as e:
                self._error_handler(ListenerError(channel, registration.callback, e))

        return invoked

    def remove_all_listeners(self, channel: Optional[str] = None) -> None:
        """
        Remove listeners from one channel, or from every channel.

        Args:
            channel: Channel to clear (None = all channels)
        """
        if channel is None:
            for registrations in self._channels.values():
                for registration in registrations:
                    registration.active = False
            self._channels.clear()
            self._logger.debug("All listeners removed")
            return

        for registration in self._channels.pop(channel, []):
            registration.active = False
        self._logger.debug(f"Listeners removed: {channel}")

    def listener_count(self, channel: Optional[str] = None) -> int:
        """
        Count registrations.

        Args:
            channel: Channel to count (None = all channels)

        Returns:
            Number of active registrations
        """
        if channel is not None:
            return len(self._channels.get(channel, []))
        return sum(len(registrations) for registrations in self._channels.values())

    def has_listeners(self, channel: str) -> bool:
        """Check if a channel has at least one listener."""
        return bool(self._channels.get(channel))

    def channels(self) -> List[str]:
        """
        Get names of channels with listeners.

        Returns:
            List of channel names in first-subscription order
        """
        return list(self._channels.keys())

    def _add(self, registration: Registration) -> Unsubscribe:
        self._channels.setdefault(registration.channel, []).append(registration)
        self._logger.debug(f"Listener added: {registration.channel}")

        def unsubscribe() -> None:
            self._remove(registration)

        return unsubscribe

    def _remove(self, registration: Registration) -> None:
        if not registration.active:
            return
        registration.active = False

        registrations = self._channels.get(registration.channel)
        if registrations is None:
            return
        registrations.remove(registration)
        # Empty channels are dropped so they don't accumulate
        if not registrations:
            del self._channels[registration.channel]
        self._logger.debug(f"Listener removed: {registration.channel}")

    def _log_listener_error(self, error: ListenerError) -> None:
        self._logger.error(str(error), exc_info=error.cause)
