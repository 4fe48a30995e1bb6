"""Action types and slice reducers of the overlay application."""

from typing import Any, Dict, Optional

from statebus.core.store import Reducer
from statebus.interfaces.actions import Action, ActionType
from statebus.interfaces.schema import PayloadSchema, nullable


PANEL_IDS = ("item_list", "content_panel", "status_bar")


# === Action Types ===

ITEM_SELECT = ActionType("selection/select", PayloadSchema.of(item_id=nullable(str)))

PANEL_VISIBILITY_SET = ActionType(
    "panels/set_visibility", PayloadSchema.of(panel_id=str, visible=bool)
)
PANELS_SHOWN = ActionType("panels/show_only", PayloadSchema.of(panel_ids=(list, tuple)))

SETTINGS_UPDATE = ActionType("settings/update", PayloadSchema.of(changes=dict))

CONTENT_REQUESTED = ActionType(
    "content/requested", PayloadSchema.of(item_id=str, generation=int)
)
CONTENT_RECEIVED = ActionType(
    "content/received", PayloadSchema.of(item_id=str, generation=int, entries=(list, tuple))
)
CONTENT_FAILED = ActionType(
    "content/failed", PayloadSchema.of(item_id=str, generation=int, error=str)
)


# === Reducers ===

def selection(state: Optional[Dict[str, Any]], action: Action) -> Dict[str, Any]:
    if state is None:
        state = {"selected_id": None}

    if ITEM_SELECT.matches(action):
        item_id = action.payload["item_id"]
        if item_id != state["selected_id"]:
            return {**state, "selected_id": item_id}

    return state


def panels(state: Optional[Dict[str, bool]], action: Action) -> Dict[str, bool]:
    if state is None:
        state = {panel_id: True for panel_id in PANEL_IDS}

    if PANEL_VISIBILITY_SET.matches(action):
        panel_id = action.payload["panel_id"]
        visible = action.payload["visible"]
        if panel_id in state and state[panel_id] != visible:
            return {**state, panel_id: visible}

    elif PANELS_SHOWN.matches(action):
        shown = set(action.payload["panel_ids"])
        updated = {panel_id: panel_id in shown for panel_id in state}
        if updated != state:
            return updated

    return state


def settings(state: Optional[Dict[str, Any]], action: Action) -> Dict[str, Any]:
    if state is None:
        state = {"use_live_data": False, "refresh_interval": 30}

    if SETTINGS_UPDATE.matches(action):
        changes = {
            key: value for key, value in action.payload["changes"].items()
            if key in state and state[key] != value
        }
        if changes:
            return {**state, **changes}

    return state


def content(state: Optional[Dict[str, Any]], action: Action) -> Dict[str, Any]:
    """
    Entries of the item being displayed.

    ``generation`` identifies the latest request; results carrying an older
    generation are ignored.
    """
    if state is None:
        state = {
            "item_id": None,
            "status": "idle",
            "entries": (),
            "error": None,
            "generation": 0,
        }

    if CONTENT_REQUESTED.matches(action):
        return {
            "item_id": action.payload["item_id"],
            "status": "loading",
            "entries": (),
            "error": None,
            "generation": action.payload["generation"],
        }

    if CONTENT_RECEIVED.matches(action):
        if action.payload["generation"] != state["generation"]:
            return state
        return {
            **state,
            "status": "ready",
            "entries": tuple(action.payload["entries"]),
            "error": None,
        }

    if CONTENT_FAILED.matches(action):
        if action.payload["generation"] != state["generation"]:
            return state
        return {**state, "status": "error", "error": action.payload["error"]}

    return state


def overlay_reducers() -> Dict[str, Reducer]:
    """Slice name -> reducer for the overlay root state."""
    return {
        "selection": selection,
        "panels": panels,
        "settings": settings,
        "content": content,
    }
