"""Components of the overlay application."""

from abc import abstractmethod
from typing import Any, Dict, List, Optional

from statebus.interfaces.base_component import BaseComponent
from statebus.overlay.channels import (
    CONTENT_LOADED,
    LOAD_CONTENT,
    SELECT_ITEM,
    SETTINGS_CHANGED,
    SHOW_PANELS,
    TOAST,
    TOGGLE_PANEL,
    UPDATE_SETTINGS,
)


class PanelComponent(BaseComponent):
    """
    Component drawn only while its entry in the panels slice is visible.

    Subclasses implement view() and declare what else they watch in
    mount_panel(). Watches compare by reference, so a dispatch that leaves a
    panel's slices untouched does not re-render it.
    """

    def on_mount(self) -> None:
        self.watch(lambda state: state["panels"].get(self.component_id, True), self._on_visibility)
        self.mount_panel()

    def mount_panel(self) -> None:
        pass

    @property
    def is_visible(self) -> bool:
        return self.get_state()["panels"].get(self.component_id, True)

    def refresh(self, *_: Any) -> None:
        if not self.is_visible:
            self._surface.clear(self.component_id)
            return
        self.render(self.view(self.get_state()))

    @abstractmethod
    def view(self, state: Dict[str, Any]) -> Any:
        """Build the content to display from the state."""
        pass

    def _on_visibility(self, visible: bool, previous: Optional[bool]) -> None:
        self.refresh()


class ItemList(PanelComponent):
    """Selectable list of catalog items."""

    default_id = "item_list"

    def mount_panel(self) -> None:
        self.watch(lambda state: state["selection"], self.refresh, immediate=False)
        self.bind(self.surface_event("click"), self._on_click)

    def view(self, state: Dict[str, Any]) -> List[str]:
        selected = state["selection"]["selected_id"]
        items = self._kernel.get_config("overlay.catalog") or {}
        return [f"{'>' if item == selected else ' '} {item}" for item in items]

    def _on_click(self, event: Dict[str, Any]) -> None:
        self.send_command(SELECT_ITEM, item_id=event["item_id"])


class ContentPanel(PanelComponent):
    """Entries of the selected item; requests a load whenever the selection changes."""

    default_id = "content_panel"

    def mount_panel(self) -> None:
        self.watch(lambda state: state["content"], self.refresh, immediate=False)
        self.watch(lambda state: state["selection"], self._on_selection, immediate=False)
        self.bind(self.surface_event("reload"), self._on_reload)

    def view(self, state: Dict[str, Any]) -> List[str]:
        content = state["content"]
        if content["item_id"] is None:
            return ["No item selected"]
        header = f"{content['item_id']} ({content['status']})"
        if content["status"] == "error":
            return [header, f"error: {content['error']}"]
        return [header] + [f"  {entry}" for entry in content["entries"]]

    def _on_selection(self, selection: Dict[str, Any], previous: Optional[Dict[str, Any]]) -> None:
        if selection["selected_id"] is not None:
            self.send_command(LOAD_CONTENT, item_id=selection["selected_id"])

    def _on_reload(self, _: Any) -> None:
        selected = self.get_state()["selection"]["selected_id"]
        if selected is not None:
            self.send_command(LOAD_CONTENT, item_id=selected)


class StatusBar(PanelComponent):
    """Data source indicator plus the latest message."""

    default_id = "status_bar"

    def __init__(self, kernel, surface, component_id=None, config=None):
        super().__init__(kernel, surface, component_id, config)
        self._message = ""

    @property
    def message(self) -> str:
        return self._message

    def mount_panel(self) -> None:
        self._message = ""
        self.watch(lambda state: state["settings"], self.refresh, immediate=False)
        self.listen(TOAST, self._on_toast)
        self.listen(SETTINGS_CHANGED, self._on_settings_changed)
        self.listen(CONTENT_LOADED, self._on_content_loaded)

    def view(self, state: Dict[str, Any]) -> str:
        source = "live" if state["settings"]["use_live_data"] else "fixture"
        return f"[{source}] {self._message}".rstrip()

    def _show(self, message: str) -> None:
        self._message = message
        self.refresh()

    def _on_toast(self, payload: Dict[str, Any]) -> None:
        self._show(f"{payload['level']}: {payload['message']}")

    def _on_settings_changed(self, payload: Dict[str, Any]) -> None:
        if payload["data_source_changed"]:
            self._show("Data source changed")

    def _on_content_loaded(self, payload: Dict[str, Any]) -> None:
        self._show(f"Loaded {payload['count']} entries from {payload['item_id']}")


class PanelControls(BaseComponent):
    """Show-all / hide-all / show-one buttons and the settings form."""

    default_id = "panel_controls"

    CONTROLS = ("show_all", "hide_all", "show_only", "toggle", "apply_settings")

    def on_mount(self) -> None:
        self.bind(self.surface_event("show_all"), self._on_show_all)
        self.bind(self.surface_event("hide_all"), self._on_hide_all)
        self.bind(self.surface_event("show_only"), self._on_show_only)
        self.bind(self.surface_event("toggle"), self._on_toggle)
        self.bind(self.surface_event("apply_settings"), self._on_apply_settings)
        self.render(list(self.CONTROLS))

    def _on_show_all(self, _: Any) -> None:
        self.send_command(SHOW_PANELS, panel_ids=list(self.get_state()["panels"]))

    def _on_hide_all(self, _: Any) -> None:
        self.send_command(SHOW_PANELS, panel_ids=[])
        self.notify(TOAST, message="All panels hidden", level="info")

    def _on_show_only(self, event: Dict[str, Any]) -> None:
        self.send_command(SHOW_PANELS, panel_ids=[event["panel_id"]])

    def _on_toggle(self, event: Dict[str, Any]) -> None:
        self.send_command(TOGGLE_PANEL, panel_id=event["panel_id"])

    def _on_apply_settings(self, event: Dict[str, Any]) -> None:
        changes = {
            key: event[key] for key in ("use_live_data", "refresh_interval")
            if key in event
        }
        self.send_command(UPDATE_SETTINGS, **changes)
