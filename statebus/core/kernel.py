"""Application context: one event bus, one store, two registries."""

from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, TYPE_CHECKING
import logging

from statebus.core.config_loader import ConfigLoader
from statebus.core.event_bus import EventBus, Unsubscribe
from statebus.core.reducers import combine_reducers
from statebus.core.registry import ComponentRegistry, ServiceRegistry
from statebus.core.router import ChannelRouter
from statebus.core.store import Reducer, Store, create_store
from statebus.interfaces.actions import Action
from statebus.interfaces.channels import CommandChannel, NotificationChannel

if TYPE_CHECKING:
    from statebus.interfaces.base_component import BaseComponent
    from statebus.interfaces.base_service import BaseService


class Kernel:
    """
    Application context of statebus.

    The kernel is responsible for:
    1. Loading configuration
    2. Owning the single EventBus and Store of the application
    3. Routing commands and notifications
    4. Registering services and components
    5. Running their lifecycle (initialize services, then mount components)

    Services and components receive the kernel in their constructor; there
    is no module-level shared state.

    Usage:
        kernel = Kernel({"selection": selection_reducer}, config={...})
        kernel.register_service(SelectionService(kernel))
        kernel.register_component(ItemList(kernel, surface))

        kernel.start()
        kernel.send_command(SELECT_ITEM, {"item_id": "logs"})
        kernel.stop()
    """

    def __init__(
        self,
        reducers: Mapping[str, Reducer],
        config_path: Optional[Path] = None,
        config: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize the kernel.

        Args:
            reducers: Slice name -> slice reducer for the root state
            config_path: Path to configuration file
            config: Overrides merged over the file and the defaults
        """
        self._config_loader = ConfigLoader(config_path, config)
        self._config = self._config_loader.load()

        self._event_bus = EventBus()
        self._store = create_store(combine_reducers(reducers))
        self._router = ChannelRouter(
            self._event_bus,
            self._store,
            unhandled=self.get_config("commands.unhandled", "warn")
        )

        strict = self.get_config("registry.strict", False)
        self._services = ServiceRegistry(
            self._router,
            strict=strict,
            declared_order=self.get_config("registry.service_order", [])
        )
        self._components = ComponentRegistry(
            self._router,
            strict=strict,
            declared_order=self.get_config("registry.component_order", [])
        )

        self._running = False
        self._logger = logging.getLogger("statebus.kernel")

    # === Properties ===

    @property
    def event_bus(self) -> EventBus:
        """Get the event bus."""
        return self._event_bus

    @property
    def store(self) -> Store:
        """Get the store."""
        return self._store

    @property
    def router(self) -> ChannelRouter:
        """Get the command/notification router."""
        return self._router

    @property
    def services(self) -> ServiceRegistry:
        """Get the service registry."""
        return self._services

    @property
    def components(self) -> ComponentRegistry:
        """Get the component registry."""
        return self._components

    @property
    def config(self) -> Dict[str, Any]:
        """Get the configuration."""
        return self._config

    @property
    def is_running(self) -> bool:
        """Check if kernel is running."""
        return self._running

    # === Registration ===

    def register_service(self, service: "BaseService") -> bool:
        """Register a service under its service_info name."""
        return self._services.register(service.name, service)

    def register_component(self, component: "BaseComponent") -> bool:
        """Register a component under its id."""
        return self._components.register(component.component_id, component)

    def get_service(self, name: str) -> Optional["BaseService"]:
        return self._services.get(name)

    def get_component(self, component_id: str) -> Optional["BaseComponent"]:
        return self._components.get(component_id)

    # === Lifecycle ===

    def start(self) -> None:
        """Initialize services, then mount components. Idempotent."""
        if self._running:
            return

        self._logger.info("Starting statebus kernel...")
        self._services.initialize_services()
        self._components.initialize_components()
        self._running = True
        self._logger.info(
            f"Kernel started with {len(self._services)} services "
            f"and {len(self._components)} components"
        )

    def stop(self) -> None:
        """Unmount components in reverse order."""
        if not self._running:
            return

        self._logger.info("Stopping statebus kernel...")
        self._running = False
        self._components.unmount_components()
        self._logger.info("Kernel stopped")

    # === Store / Bus Shortcuts ===

    def dispatch(self, action: Action) -> Action:
        return self._store.dispatch(action)

    def get_state(self) -> Any:
        return self._store.get_state()

    def subscribe(self, listener: Callable[[Any], Any]) -> Unsubscribe:
        return self._store.subscribe(listener)

    def send_command(self, channel: CommandChannel, payload: Any = None) -> bool:
        return self._router.send_command(channel, payload)

    def notify(self, channel: NotificationChannel, payload: Any = None) -> int:
        return self._router.notify(channel, payload)

    def on_notification(
        self,
        channel: NotificationChannel,
        listener: Callable[[Dict[str, Any]], Any]
    ) -> Unsubscribe:
        return self._router.on_notification(channel, listener)

    # === Configuration ===

    def get_config(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config_loader.get(key, default)

    def set_config(self, key: str, value: Any) -> None:
        """Set configuration value."""
        self._config_loader.set(key, value)
