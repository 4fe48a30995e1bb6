"""
Tests for BaseComponent mounting and the component registry
"""

import logging

import pytest

from statebus.interfaces.actions import Action
from statebus.interfaces.base_component import BaseComponent, ComponentState
from statebus.interfaces.channels import COMPONENTS_MOUNTED, NotificationChannel
from statebus.interfaces.schema import PayloadSchema

from conftest import PING, RecordingService


BLINK = NotificationChannel("blink", PayloadSchema.of(times=int))


class Probe(BaseComponent):
    """Component using every binding helper."""

    default_id = "probe"

    def __init__(self, kernel, surface, component_id=None, fail=False):
        super().__init__(kernel, surface, component_id)
        self.fail = fail
        self.blinks = []
        self.states = 0

    def on_mount(self) -> None:
        self.watch(lambda state: state["counter"], self._show)
        self.subscribe_store(self._count)
        self.listen(BLINK, self.blinks.append)
        self.bind(self.surface_event("click"), lambda _: self.send_command(PING, n=1))
        if self.fail:
            raise RuntimeError("probe refused to mount")

    def _show(self, value, previous) -> None:
        self.render(f"count={value}")

    def _count(self, state) -> None:
        self.states += 1


def subscriptions(kernel, surface):
    return (
        kernel.store.subscriber_count,
        kernel.event_bus.listener_count(),
        surface.binding_count,
    )


class TestMounting:
    """Test mount/unmount bookkeeping."""

    def test_mount_renders_immediately(self, kernel, surface):
        probe = Probe(kernel, surface)

        assert probe.mount() is True

        assert surface.content("probe") == "count=0"
        assert probe.is_mounted
        assert probe.binding_count == 4

    def test_mount_is_idempotent(self, kernel, surface):
        probe = Probe(kernel, surface)
        probe.mount()

        assert probe.mount() is False
        assert probe.binding_count == 4

    def test_unmount_leaves_no_subscriptions(self, kernel, surface):
        before = subscriptions(kernel, surface)
        probe = Probe(kernel, surface)

        probe.mount()
        assert subscriptions(kernel, surface) != before

        assert probe.unmount() is True
        assert subscriptions(kernel, surface) == before
        assert probe.state is ComponentState.UNMOUNTED
        assert surface.content("probe") is None

    def test_unmounted_component_stops_reacting(self, kernel, surface):
        probe = Probe(kernel, surface)
        probe.mount()
        probe.unmount()
        renders = probe.render_count

        kernel.dispatch(Action("INC"))
        kernel.notify(BLINK, {"times": 2})

        assert probe.render_count == renders
        assert probe.blinks == []

    def test_failed_mount_releases_partial_bindings(self, kernel, surface):
        before = subscriptions(kernel, surface)
        probe = Probe(kernel, surface, fail=True)

        with pytest.raises(RuntimeError):
            probe.mount()

        assert subscriptions(kernel, surface) == before
        assert not probe.is_mounted

    def test_component_needs_id(self, kernel, surface):
        class Anonymous(Probe):
            default_id = ""

        with pytest.raises(ValueError):
            Anonymous(kernel, surface)


class TestReacting:
    """Test the helpers while mounted."""

    def test_watch_rerenders_on_change_only(self, kernel, surface):
        probe = Probe(kernel, surface)
        probe.mount()

        kernel.dispatch(Action("ADD_NAME", {"name": "ada"}))
        kernel.dispatch(Action("INC"))

        assert probe.render_count == 2
        assert surface.content("probe") == "count=1"
        assert probe.states == 2

    def test_listen_and_bind(self, kernel, surface):
        service = RecordingService(kernel, "pinger", [], channel=PING)
        service.initialize()
        probe = Probe(kernel, surface)
        probe.mount()

        kernel.notify(BLINK, {"times": 3})
        surface.trigger("probe:click")

        assert probe.blinks == [{"times": 3}]
        assert service.handled == [1]
        assert surface.content("probe") == "count=1"


class TestComponentRegistry:
    """Test mounting through the registry."""

    def test_mount_order_and_notification(self, kernel, surface):
        received = []
        kernel.on_notification(COMPONENTS_MOUNTED, received.append)
        kernel.register_component(Probe(kernel, surface, "b"))
        kernel.register_component(Probe(kernel, surface, "a"))

        kernel.start()

        assert received == [{"components": ["b", "a"]}]

    def test_failing_component_is_skipped(self, kernel, surface, caplog):
        received = []
        kernel.on_notification(COMPONENTS_MOUNTED, received.append)
        kernel.register_component(Probe(kernel, surface, "broken", fail=True))
        kernel.register_component(Probe(kernel, surface, "fine"))

        with caplog.at_level(logging.ERROR, logger="statebus.registry"):
            kernel.start()

        assert received == [{"components": ["fine"]}]
        assert kernel.get_component("fine").is_mounted
        assert not kernel.get_component("broken").is_mounted
        assert "broken" in caplog.text

    def test_stop_unmounts_everything(self, kernel, surface):
        before = subscriptions(kernel, surface)
        kernel.register_component(Probe(kernel, surface, "one"))
        kernel.register_component(Probe(kernel, surface, "two"))

        kernel.start()
        kernel.stop()

        assert subscriptions(kernel, surface) == before
        assert not kernel.is_running

    def test_restart_remounts(self, kernel, surface):
        kernel.register_component(Probe(kernel, surface))
        kernel.start()
        kernel.stop()

        kernel.start()

        assert kernel.get_component("probe").is_mounted

    def test_late_component_mounted_immediately(self, kernel, surface):
        kernel.start()
        probe = Probe(kernel, surface)

        kernel.register_component(probe)

        assert probe.is_mounted

    def test_unregister_unmounts(self, kernel, surface):
        before = subscriptions(kernel, surface)
        kernel.register_component(Probe(kernel, surface))
        kernel.start()

        removed = kernel.components.unregister("probe")

        assert removed is not None and not removed.is_mounted
        assert "probe" not in kernel.components
        assert subscriptions(kernel, surface) == before
