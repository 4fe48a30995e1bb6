"""Core components of statebus."""

from statebus.core.kernel import Kernel
from statebus.core.event_bus import EventBus
from statebus.core.store import DispatchQueue, Store, create_store
from statebus.core.reducers import combine_reducers
from statebus.core.registry import ComponentRegistry, ServiceRegistry
from statebus.core.router import ChannelRouter

__all__ = [
    "Kernel",
    "EventBus",
    "DispatchQueue",
    "Store",
    "create_store",
    "combine_reducers",
    "ComponentRegistry",
    "ServiceRegistry",
    "ChannelRouter",
]
