"""Base service interface for statebus."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, TYPE_CHECKING
import logging

from statebus.core.event_bus import Unsubscribe
from statebus.interfaces.actions import Action
from statebus.interfaces.channels import CommandChannel, NotificationChannel
from statebus.utils.logging_setup import get_logger

if TYPE_CHECKING:
    from statebus.core.kernel import Kernel


# Type alias for command handlers, called with the validated payload
CommandHandler = Callable[[Dict[str, Any]], Any]


class ServiceState(Enum):
    """Service lifecycle states."""

    UNINITIALIZED = auto()  # Constructed, command handlers attached
    INITIALIZING = auto()   # initialize() is running
    READY = auto()          # Handling commands
    ERROR = auto()          # initialize() failed


class PreInitPolicy(Enum):
    """What a service does with commands that arrive before initialize()."""

    QUEUE = auto()    # Buffer and replay in arrival order once ready
    IGNORE = auto()   # Drop with a log line
    PROCESS = auto()  # Handle immediately


@dataclass
class ServiceInfo:
    """
    Service metadata.

    Every service provides this for registration and ordering.
    """

    name: str                                            # Unique service name
    description: str = ""                                # Description
    dependencies: Set[str] = field(default_factory=set)  # Services initialized first
    pre_init_policy: PreInitPolicy = PreInitPolicy.QUEUE


class BaseService(ABC):
    """
    Abstract base class for long-lived business-logic handlers.

    A service turns command channels into store dispatches. It attaches its
    command handlers in the constructor, so no command sent between
    construction and initialization is lost; such early commands are handled
    according to ``service_info.pre_init_policy``.

    Example:

        class CounterService(BaseService):
            @property
            def service_info(self) -> ServiceInfo:
                return ServiceInfo(name="counter")

            def __init__(self, kernel):
                super().__init__(kernel)
                self.handle(INCREMENT, self._on_increment)

            def _on_increment(self, payload):
                self.dispatch(INCREMENTED(by=payload["by"]))
    """

    def __init__(self, kernel: "Kernel", config: Optional[Dict[str, Any]] = None):
        """
        Initialize the base service.

        Args:
            kernel: Application context holding the bus and store
            config: Service configuration (defaults to services.<name>)
        """
        self._kernel = kernel
        self._state = ServiceState.UNINITIALIZED
        self._pending: List[Tuple[str, CommandHandler, Dict[str, Any]]] = []
        self._unsubscribers: List[Unsubscribe] = []
        self._logger: logging.Logger = get_logger(f"service.{self.name}")
        if config is None:
            config = kernel.get_config(f"services.{self.name}", {}) or {}
        self._config = config

    # === Properties ===

    @property
    @abstractmethod
    def service_info(self) -> ServiceInfo:
        """Service metadata."""
        pass

    @property
    def name(self) -> str:
        """Unique service name."""
        return self.service_info.name

    @property
    def state(self) -> ServiceState:
        """Current lifecycle state."""
        return self._state

    @property
    def config(self) -> Dict[str, Any]:
        """Service configuration."""
        return self._config

    @property
    def kernel(self) -> "Kernel":
        """Application context."""
        return self._kernel

    @property
    def logger(self) -> logging.Logger:
        """Service logger."""
        return self._logger

    @property
    def pending_commands(self) -> int:
        """Number of commands buffered before initialization."""
        return len(self._pending)

    # === Lifecycle ===

    def initialize(self) -> bool:
        """
        Run the initialization hook once.

        Buffered commands are replayed after on_initialize() succeeds.
        A service in ERROR state may be retried.

        Returns:
            True if this call initialized the service, False if it was a no-op

        Raises:
            Exception: Whatever on_initialize() raised
        """
        if self._state in (ServiceState.INITIALIZING, ServiceState.READY):
            return False

        self._state = ServiceState.INITIALIZING
        try:
            self.on_initialize()
        except Exception:
            self._state = ServiceState.ERROR
            raise

        self._state = ServiceState.READY
        self._logger.info(f"Service {self.name} ready")
        self._replay_pending()
        return True

    def on_initialize(self) -> None:
        """
        Initialization hook.

        Called once, after every dependency is ready. Override to seed state
        or start background work.
        """
        pass

    def dispose(self) -> None:
        """Detach every command handler this service attached."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._pending.clear()

    # === Commands ===

    def handle(self, channel: CommandChannel, handler: CommandHandler) -> None:
        """
        Claim a command channel.

        Call from the constructor.

        Args:
            channel: Command channel to own
            handler: Called with the validated payload

        Raises:
            CommandOwnershipError: If another service owns the channel
        """
        def on_command(payload: Dict[str, Any]) -> Any:
            return self._receive(channel.name, handler, payload)

        self._unsubscribers.append(
            self._kernel.router.on_command(channel, on_command, owner=self.name)
        )

    def _receive(self, channel: str, handler: CommandHandler, payload: Dict[str, Any]) -> Any:
        if self._state is ServiceState.READY:
            return handler(payload)

        policy = self.service_info.pre_init_policy
        if self._state is ServiceState.ERROR:
            self._logger.warning(f"Dropping command {channel}: service failed to initialize")
        elif policy is PreInitPolicy.PROCESS:
            return handler(payload)
        elif policy is PreInitPolicy.QUEUE:
            self._pending.append((channel, handler, payload))
            self._logger.debug(f"Command {channel} queued until initialized")
        else:
            self._logger.info(f"Ignoring command {channel} received before initialization")
        return None

    def _replay_pending(self) -> None:
        pending, self._pending = self._pending, []
        for channel, handler, payload in pending:
            self._logger.debug(f"Replaying queued command {channel}")
            try:
                handler(payload)
            except Exception as e:
                self._logger.error(f"Queued command {channel} failed: {e}", exc_info=True)

    # === Kernel Shortcuts ===

    def dispatch(self, action: Action) -> Action:
        """Dispatch an action to the store."""
        return self._kernel.store.dispatch(action)

    def get_state(self) -> Any:
        """Get the current state (always fresh, never cache it across awaits)."""
        return self._kernel.store.get_state()

    def notify(self, channel: NotificationChannel, **payload: Any) -> int:
        """Emit a notification."""
        return self._kernel.router.notify(channel, payload)

    def watch(
        self,
        selector: Callable[[Any], Any],
        callback: Callable[[Any, Any], Any]
    ) -> None:
        """Watch a selected state value for the lifetime of the service."""
        self._unsubscribers.append(self._kernel.store.watch(selector, callback))

    def get_config(self, key: str, default: Any = None) -> Any:
        """
        Get a value from the service configuration.

        Args:
            key: Configuration key (dot notation supported: "a.b.c")
            default: Default value

        Returns:
            Configuration value or default
        """
        value = self._config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def get_service(self, name: str) -> Optional["BaseService"]:
        """Get another registered service by name."""
        return self._kernel.services.get(name)

    # === Health Check ===

    def health_check(self) -> Dict[str, Any]:
        """
        Report service health.

        Returns:
            Dict with state information
        """
        return {
            "name": self.name,
            "state": self._state.name,
            "healthy": self._state is ServiceState.READY,
            "pending_commands": len(self._pending),
            "dependencies": sorted(self.service_info.dependencies),
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name}, state={self._state.name})>"
