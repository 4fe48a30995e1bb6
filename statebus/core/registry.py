"""Service and component registries."""

import heapq
from typing import Dict, Generic, Iterable, List, Optional, Set, TypeVar, TYPE_CHECKING
import logging

from statebus.core.exceptions import (
    ComponentNotFoundError,
    DependencyError,
    DuplicateRegistrationError,
    RegistryError,
    ServiceInitializationError,
    ServiceNotFoundError,
)
from statebus.core.router import ChannelRouter
from statebus.interfaces.channels import COMPONENTS_MOUNTED, SERVICES_INITIALIZED

if TYPE_CHECKING:
    from statebus.interfaces.base_component import BaseComponent
    from statebus.interfaces.base_service import BaseService


T = TypeVar("T")


class OrderedRegistry(Generic[T]):
    """
    Named collection with a declared, fixed initialization order.

    The order is a topological sort of the entries' dependencies. Entries
    with no ordering constraint between them follow the declared order list
    first, then registration order.
    """

    kind = "entry"

    def __init__(
        self,
        router: ChannelRouter,
        strict: bool = False,
        declared_order: Optional[Iterable[str]] = None
    ):
        """
        Initialize the registry.

        Args:
            router: Router used for lifecycle notifications
            strict: Raise on duplicate names instead of warning
            declared_order: Names to place first, in this order
        """
        self._router = router
        self._strict = strict
        self._declared_order = list(declared_order or [])
        self._entries: Dict[str, T] = {}
        self._initialized = False
        self._logger = logging.getLogger("statebus.registry")

    # === Registration ===

    def register(self, name: str, instance: T) -> bool:
        """
        Register an instance under a name.

        Args:
            name: Unique name
            instance: Instance to register

        Returns:
            False if the name was taken and the instance was ignored

        Raises:
            DuplicateRegistrationError: If the name is taken and strict mode is on
        """
        if name in self._entries:
            if self._strict:
                raise DuplicateRegistrationError(self.kind, name)
            self._logger.warning(
                f"Duplicate {self.kind} registration ignored: {name}"
            )
            return False

        self._entries[name] = instance
        self._logger.debug(f"Registered {self.kind}: {name}")
        return True

    def get(self, name: str) -> Optional[T]:
        """
        Get an instance by name.

        Returns:
            Instance or None
        """
        return self._entries.get(name)

    def require(self, name: str) -> T:
        """
        Get an instance by name.

        Raises:
            RegistryError: If not registered
        """
        instance = self._entries.get(name)
        if instance is None:
            raise self._not_found(name)
        return instance

    def names(self) -> List[str]:
        """Get registered names in registration order."""
        return list(self._entries.keys())

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    # === Ordering ===

    def resolve_order(self) -> List[str]:
        """
        Compute the initialization order.

        Returns:
            Names, every entry after all of its dependencies

        Raises:
            DependencyError: On a missing dependency or a cycle
        """
        names = list(self._entries.keys())
        rank = {}
        for name in self._declared_order:
            if name in self._entries and name not in rank:
                rank[name] = len(rank)
        for name in names:
            if name not in rank:
                rank[name] = len(rank)

        dependents: Dict[str, List[str]] = {name: [] for name in names}
        remaining: Dict[str, int] = {}
        for name in names:
            deps = self._dependencies(name)
            for dep in deps:
                if dep not in self._entries:
                    raise DependencyError(name, f"depends on unregistered {self.kind} '{dep}'")
                dependents[dep].append(name)
            remaining[name] = len(deps)

        ready = [(rank[name], name) for name in names if remaining[name] == 0]
        heapq.heapify(ready)
        order = []
        while ready:
            _, name = heapq.heappop(ready)
            order.append(name)
            for dependent in dependents[name]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    heapq.heappush(ready, (rank[dependent], dependent))

        if len(order) != len(names):
            stuck = sorted(name for name in names if name not in order)
            raise DependencyError(stuck[0], f"dependency cycle among {stuck}")

        return order

    def _dependencies(self, name: str) -> Set[str]:
        return set()

    def _not_found(self, name: str) -> RegistryError:
        return RegistryError(f"{self.kind.capitalize()} '{name}' not found")


class ServiceRegistry(OrderedRegistry["BaseService"]):
    """
    Registry of long-lived services.

    Usage:
        registry = ServiceRegistry(router)
        registry.register("settings", settings_service)
        registry.register("content", content_service)

        # Dependencies first, then declared order, then registration order
        registry.initialize_services()
    """

    kind = "service"

    def initialize_services(self) -> bool:
        """
        Initialize every service exactly once, in dependency order.

        Emits SERVICES_INITIALIZED after the last one. If a service fails,
        the registry stays uninitialized; calling again retries the services
        that are not ready yet.

        Returns:
            True if this call initialized the services, False if it was a no-op

        Raises:
            DependencyError: If the order cannot be resolved (nothing runs)
            ServiceInitializationError: If a service's initialize() raised
        """
        if self._initialized:
            self._logger.debug("Services already initialized")
            return False

        order = self.resolve_order()
        for name in order:
            try:
                self._entries[name].initialize()
            except Exception as e:
                self._logger.error(f"Failed to initialize service {name}: {e}")
                raise ServiceInitializationError(name, e) from e

        self._initialized = True
        self._logger.info(f"Initialized {len(order)} services: {order}")
        self._router.notify(SERVICES_INITIALIZED, {"services": order})
        return True

    def register(self, name: str, instance: "BaseService") -> bool:
        """Register a service; late registrations are initialized right away."""
        added = super().register(name, instance)
        if added and self._initialized:
            missing = [
                dep for dep in self._dependencies(name)
                if dep not in self._entries
            ]
            if missing:
                del self._entries[name]
                raise DependencyError(name, f"depends on unregistered service '{missing[0]}'")
            instance.initialize()
        return added

    def health_check(self) -> Dict[str, dict]:
        """Health of every service, by name."""
        return {name: service.health_check() for name, service in self._entries.items()}

    def _dependencies(self, name: str) -> Set[str]:
        return set(self._entries[name].service_info.dependencies)

    def _not_found(self, name: str) -> RegistryError:
        return ServiceNotFoundError(name)


class ComponentRegistry(OrderedRegistry["BaseComponent"]):
    """
    Registry of UI components.

    Components mount in declared order, then registration order, and
    unmount in reverse.
    """

    kind = "component"

    def initialize_components(self) -> bool:
        """
        Mount every component once.

        A component that fails to mount is logged and skipped; the others
        still mount. Emits COMPONENTS_MOUNTED with the ids that mounted.

        Returns:
            True if this call mounted the components, False if it was a no-op
        """
        if self._initialized:
            self._logger.debug("Components already mounted")
            return False

        mounted = []
        for component_id in self.resolve_order():
            try:
                self._entries[component_id].mount()
                mounted.append(component_id)
            except Exception as e:
                self._logger.error(f"Failed to mount component {component_id}: {e}", exc_info=True)

        self._initialized = True
        self._logger.info(f"Mounted {len(mounted)} components: {mounted}")
        self._router.notify(COMPONENTS_MOUNTED, {"components": mounted})
        return True

    def register(self, name: str, instance: "BaseComponent") -> bool:
        """Register a component; late registrations are mounted right away."""
        added = super().register(name, instance)
        if added and self._initialized:
            instance.mount()
        return added

    def unregister(self, name: str) -> Optional["BaseComponent"]:
        """
        Unmount and remove a component.

        Returns:
            The removed component or None
        """
        component = self._entries.pop(name, None)
        if component is not None:
            component.unmount()
            self._logger.debug(f"Unregistered component: {name}")
        return component

    def unmount_components(self) -> None:
        """Unmount every component in reverse mount order."""
        for component_id in reversed(self.resolve_order()):
            try:
                self._entries[component_id].unmount()
            except Exception as e:
                self._logger.error(f"Error unmounting component {component_id}: {e}", exc_info=True)
        self._initialized = False

    def _not_found(self, name: str) -> RegistryError:
        return ComponentNotFoundError(name)
