"""In-memory rendering surface for headless runs and tests."""

from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

from statebus.core.event_bus import EventBus, Unsubscribe
from statebus.core.exceptions import ListenerError
from statebus.interfaces.surface import RenderSurface


class HeadlessSurface(RenderSurface):
    """
    Rendering surface that keeps rendered content in memory.

    User input is simulated with trigger(), which delivers to bound handlers
    the same way a real surface would deliver clicks.

    Usage:
        surface = HeadlessSurface()
        surface.trigger("item_list:click", {"item_id": "logs"})
        print(surface.content("content_panel"))
    """

    def __init__(self):
        self._events = EventBus(error_handler=self._log_handler_error)
        self._targets: Dict[str, Any] = {}
        self._history: List[Tuple[str, Any]] = []
        self._logger = logging.getLogger("statebus.surface")

    @property
    def binding_count(self) -> int:
        """Number of live event bindings."""
        return self._events.listener_count()

    @property
    def history(self) -> List[Tuple[str, Any]]:
        """Every (target, content) rendered, oldest first."""
        return list(self._history)

    def bind(self, event: str, handler: Callable[[Any], Any]) -> Unsubscribe:
        return self._events.on(event, handler)

    def render(self, target: str, content: Any) -> None:
        self._targets[target] = content
        self._history.append((target, content))

    def clear(self, target: str) -> None:
        self._targets.pop(target, None)

    def trigger(self, event: str, payload: Any = None) -> int:
        """
        Simulate user input.

        Returns:
            Number of handlers that received the event
        """
        delivered = self._events.emit(event, payload)
        if not delivered:
            self._logger.debug(f"Surface event without binding: {event}")
        return delivered

    def content(self, target: str) -> Optional[Any]:
        """Content currently displayed for a target."""
        return self._targets.get(target)

    def snapshot(self) -> Dict[str, Any]:
        """Copy of every displayed target."""
        return dict(self._targets)

    def _log_handler_error(self, error: ListenerError) -> None:
        self._logger.error(str(error), exc_info=error.cause)
