"""Interfaces and base classes for statebus services and components."""

from statebus.interfaces.base_service import BaseService, PreInitPolicy, ServiceInfo, ServiceState
from statebus.interfaces.base_component import BaseComponent, ComponentState
from statebus.interfaces.actions import INIT, Action, ActionType
from statebus.interfaces.channels import CommandChannel, NotificationChannel
from statebus.interfaces.schema import PayloadSchema, StrictPayload, nullable, optional
from statebus.interfaces.surface import RenderSurface

__all__ = [
    "BaseService", "PreInitPolicy", "ServiceInfo", "ServiceState",
    "BaseComponent", "ComponentState",
    "INIT", "Action", "ActionType",
    "CommandChannel", "NotificationChannel",
    "PayloadSchema", "StrictPayload", "nullable", "optional",
    "RenderSurface",
]
