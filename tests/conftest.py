"""
Pytest Configuration and Fixtures
"""

from typing import Any, Dict, Optional

import pytest

from statebus.core.event_bus import EventBus
from statebus.core.kernel import Kernel
from statebus.interfaces.actions import Action
from statebus.interfaces.base_service import BaseService, PreInitPolicy, ServiceInfo
from statebus.interfaces.channels import CommandChannel
from statebus.interfaces.schema import PayloadSchema
from statebus.overlay.surface import HeadlessSurface


PING = CommandChannel("ping", PayloadSchema.of(n=int))


def counter(state: Optional[int], action: Action) -> int:
    if state is None:
        return 0
    if action.type == "INC":
        return state + 1
    return state


def names(state: Optional[tuple], action: Action) -> tuple:
    if state is None:
        return ()
    if action.type == "ADD_NAME":
        return state + (action.payload["name"],)
    return state


class RecordingService(BaseService):
    """Service recording initialize() calls and handled pings."""

    def __init__(
        self,
        kernel: Kernel,
        name: str,
        log: list,
        dependencies=(),
        policy: PreInitPolicy = PreInitPolicy.QUEUE,
        fail: bool = False,
        channel: Optional[CommandChannel] = None,
    ):
        self._info = ServiceInfo(
            name=name,
            dependencies=set(dependencies),
            pre_init_policy=policy,
        )
        self.log = log
        self.handled = []
        self.fail = fail
        super().__init__(kernel)
        if channel is not None:
            self.handle(channel, self._on_ping)

    @property
    def service_info(self) -> ServiceInfo:
        return self._info

    def on_initialize(self) -> None:
        if self.fail:
            raise RuntimeError(f"{self.name} cannot start")
        self.log.append(self.name)

    def _on_ping(self, payload: Dict[str, Any]) -> None:
        self.handled.append(payload["n"])
        self.dispatch(Action("INC"))


@pytest.fixture
def bus() -> EventBus:
    """Returns a fresh EventBus."""
    return EventBus()


@pytest.fixture
def kernel() -> Kernel:
    """Returns a Kernel with a counter and a names slice."""
    return Kernel({"counter": counter, "names": names})


@pytest.fixture
def surface() -> HeadlessSurface:
    """Returns an empty HeadlessSurface."""
    return HeadlessSurface()
