"""Rendering surface interface."""

from abc import ABC, abstractmethod
from typing import Any, Callable

from statebus.core.event_bus import Unsubscribe


class RenderSurface(ABC):
    """
    External collaborator that draws component output and reports user input.

    Components bind to surface events (clicks, toggles) and push rendered
    content to named targets. The kernel never renders anything itself.
    """

    @abstractmethod
    def bind(self, event: str, handler: Callable[[Any], Any]) -> Unsubscribe:
        """
        Bind a handler to a surface event.

        Args:
            event: Surface event name (e.g. "item_list:click")
            handler: Called with the event payload

        Returns:
            Callable removing the binding
        """
        pass

    @abstractmethod
    def render(self, target: str, content: Any) -> None:
        """
        Replace the content displayed for a target.

        Args:
            target: Target identifier (usually the component id)
            content: Content to display
        """
        pass

    @abstractmethod
    def clear(self, target: str) -> None:
        """Remove a target's content."""
        pass
