"""
Tests for the overlay slice reducers
"""

import pytest

from statebus.core.exceptions import PayloadValidationError
from statebus.interfaces.actions import INIT, Action
from statebus.overlay.slices import (
    CONTENT_FAILED,
    CONTENT_RECEIVED,
    CONTENT_REQUESTED,
    ITEM_SELECT,
    PANEL_IDS,
    PANEL_VISIBILITY_SET,
    PANELS_SHOWN,
    SETTINGS_UPDATE,
    content,
    panels,
    selection,
    settings,
)


class TestSelection:

    def test_select(self):
        state = selection(None, INIT)
        assert state == {"selected_id": None}

        assert selection(state, ITEM_SELECT(item_id="logs")) == {"selected_id": "logs"}

    def test_same_selection_keeps_reference(self):
        state = {"selected_id": "logs"}
        assert selection(state, ITEM_SELECT(item_id="logs")) is state

    def test_unrelated_action_keeps_reference(self):
        state = selection(None, INIT)
        assert selection(state, Action("other")) is state


class TestPanels:

    def test_all_visible_initially(self):
        assert panels(None, INIT) == {panel_id: True for panel_id in PANEL_IDS}

    def test_set_visibility(self):
        state = panels(None, INIT)
        hidden = panels(state, PANEL_VISIBILITY_SET(panel_id="status_bar", visible=False))

        assert hidden["status_bar"] is False
        assert state["status_bar"] is True

    def test_no_change_keeps_reference(self):
        state = panels(None, INIT)

        assert panels(state, PANEL_VISIBILITY_SET(panel_id="status_bar", visible=True)) is state
        assert panels(state, PANEL_VISIBILITY_SET(panel_id="ghost", visible=False)) is state
        assert panels(state, PANELS_SHOWN(panel_ids=list(PANEL_IDS))) is state

    def test_show_only(self):
        state = panels(None, INIT)

        shown = panels(state, PANELS_SHOWN(panel_ids=["content_panel"]))

        assert shown == {"item_list": False, "content_panel": True, "status_bar": False}


class TestSettings:

    def test_defaults(self):
        assert settings(None, INIT) == {"use_live_data": False, "refresh_interval": 30}

    def test_update_known_keys_only(self):
        state = settings(None, INIT)

        updated = settings(state, SETTINGS_UPDATE(changes={"refresh_interval": 60, "theme": "dark"}))

        assert updated == {"use_live_data": False, "refresh_interval": 60}

    def test_same_values_keep_reference(self):
        state = settings(None, INIT)
        assert settings(state, SETTINGS_UPDATE(changes={"refresh_interval": 30})) is state


class TestContent:

    def test_request_then_receive(self):
        state = content(None, INIT)
        state = content(state, CONTENT_REQUESTED(item_id="logs", generation=1))

        assert state["status"] == "loading"

        state = content(state, CONTENT_RECEIVED(item_id="logs", generation=1, entries=["a"]))

        assert state["status"] == "ready"
        assert state["entries"] == ("a",)

    def test_stale_result_ignored(self):
        state = content(None, INIT)
        state = content(state, CONTENT_REQUESTED(item_id="logs", generation=1))
        state = content(state, CONTENT_REQUESTED(item_id="assets", generation=2))

        assert content(state, CONTENT_RECEIVED(item_id="logs", generation=1, entries=[])) is state
        assert content(state, CONTENT_FAILED(item_id="logs", generation=1, error="x")) is state

    def test_failure(self):
        state = content(content(None, INIT), CONTENT_REQUESTED(item_id="logs", generation=1))

        failed = content(state, CONTENT_FAILED(item_id="logs", generation=1, error="timeout"))

        assert failed["status"] == "error"
        assert failed["error"] == "timeout"

    def test_action_payloads_are_checked(self):
        with pytest.raises(PayloadValidationError):
            CONTENT_REQUESTED(item_id="logs", generation="1")
