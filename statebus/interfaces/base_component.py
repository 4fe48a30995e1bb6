"""Base component interface for statebus."""

from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from statebus.core.event_bus import Unsubscribe
from statebus.interfaces.channels import CommandChannel, NotificationChannel
from statebus.interfaces.surface import RenderSurface
from statebus.utils.logging_setup import get_logger

if TYPE_CHECKING:
    from statebus.core.kernel import Kernel


class ComponentState(Enum):
    """Component lifecycle states."""

    UNMOUNTED = auto()
    MOUNTED = auto()


class BaseComponent(ABC):
    """
    Abstract base class for UI-facing objects.

    Everything a component subscribes to while mounting goes through the
    helpers below (watch, subscribe_store, listen, bind), which record a
    release handle. unmount() releases all of them, so mount() followed by
    unmount() leaves no subscription behind.

    Example:

        class Counter(BaseComponent):
            default_id = "counter"

            def on_mount(self) -> None:
                self.watch(lambda state: state["counter"], self._render)
                self.bind("counter:click", lambda _: self.send_command(INCREMENT, by=1))

            def _render(self, value, previous) -> None:
                self.render(f"Count: {value}")
    """

    default_id: str = ""

    def __init__(
        self,
        kernel: "Kernel",
        surface: RenderSurface,
        component_id: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize the base component.

        Args:
            kernel: Application context holding the bus and store
            surface: Rendering surface to draw on
            component_id: Unique id (defaults to the class's default_id)
            config: Component configuration (defaults to components.<id>)
        """
        self._id = component_id or self.default_id
        if not self._id:
            raise ValueError(f"{self.__class__.__name__} needs a component id")

        self._kernel = kernel
        self._surface = surface
        self._state = ComponentState.UNMOUNTED
        self._disposers: List[Unsubscribe] = []
        self._render_count = 0
        self._logger = get_logger(f"component.{self._id}")
        if config is None:
            config = kernel.get_config(f"components.{self._id}", {}) or {}
        self._config = config

    # === Properties ===

    @property
    def component_id(self) -> str:
        return self._id

    @property
    def state(self) -> ComponentState:
        return self._state

    @property
    def is_mounted(self) -> bool:
        return self._state is ComponentState.MOUNTED

    @property
    def render_count(self) -> int:
        """Number of render() calls since construction."""
        return self._render_count

    @property
    def binding_count(self) -> int:
        """Number of live subscriptions and bindings held by the component."""
        return len(self._disposers)

    @property
    def config(self) -> Dict[str, Any]:
        return self._config

    # === Lifecycle ===

    def mount(self) -> bool:
        """
        Mount the component.

        Idempotent. If on_mount() raises, everything it acquired so far is
        released before the exception propagates.

        Returns:
            True if this call mounted the component
        """
        if self._state is ComponentState.MOUNTED:
            return False

        try:
            self.on_mount()
        except Exception:
            self._release()
            raise

        self._state = ComponentState.MOUNTED
        self._logger.debug(f"Component {self._id} mounted ({len(self._disposers)} bindings)")
        return True

    def unmount(self) -> bool:
        """
        Unmount the component and release every binding made while mounting.

        Returns:
            True if this call unmounted the component
        """
        if self._state is not ComponentState.MOUNTED:
            return False

        try:
            self.on_unmount()
        finally:
            self._release()
            self._state = ComponentState.UNMOUNTED
            self._logger.debug(f"Component {self._id} unmounted")
        return True

    @abstractmethod
    def on_mount(self) -> None:
        """Acquire subscriptions and bindings, and do the first render."""
        pass

    def on_unmount(self) -> None:
        """Hook called before bindings are released."""
        self._surface.clear(self._id)

    # === Binding Helpers ===

    def watch(
        self,
        selector: Callable[[Any], Any],
        callback: Callable[[Any, Any], Any],
        immediate: bool = True
    ) -> None:
        """
        Re-render when a selected state value changes by reference.

        Args:
            selector: Function extracting a value from the state
            callback: Called as callback(new_value, old_value)
            immediate: Also call it once now with the current value
        """
        store = self._kernel.store
        self._disposers.append(store.watch(selector, callback))
        if immediate:
            callback(selector(store.get_state()), None)

    def subscribe_store(self, listener: Callable[[Any], Any]) -> None:
        """Subscribe to every state change until unmount."""
        self._disposers.append(self._kernel.store.subscribe(listener))

    def listen(self, channel: NotificationChannel, listener: Callable[[Any], Any]) -> None:
        """Listen to a notification channel until unmount."""
        self._disposers.append(self._kernel.router.on_notification(channel, listener))

    def bind(self, event: str, handler: Callable[[Any], Any]) -> None:
        """Bind to a rendering-surface event until unmount."""
        self._disposers.append(self._surface.bind(event, handler))

    def surface_event(self, name: str) -> str:
        """Surface event name scoped to this component."""
        return f"{self._id}:{name}"

    # === Output ===

    def render(self, content: Any) -> None:
        """Push content to this component's surface target."""
        self._render_count += 1
        self._surface.render(self._id, content)

    def send_command(self, channel: CommandChannel, **payload: Any) -> bool:
        """Send a command; returns False if nobody handles it."""
        return self._kernel.router.send_command(channel, payload)

    def notify(self, channel: NotificationChannel, **payload: Any) -> int:
        """Emit an ephemeral notification that never touches the store."""
        return self._kernel.router.notify(channel, payload)

    def get_state(self) -> Any:
        return self._kernel.store.get_state()

    def _release(self) -> None:
        disposers, self._disposers = self._disposers, []
        for dispose in reversed(disposers):
            dispose()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self._id}, state={self._state.name})>"
