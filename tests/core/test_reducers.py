"""
Tests for combine_reducers
"""

import logging

import pytest

from statebus.core.reducers import combine_reducers
from statebus.interfaces.actions import INIT, Action

from conftest import counter, names


class TestCombineReducers:
    """Test slice composition."""

    def test_initial_state_has_every_slice(self):
        root = combine_reducers({"counter": counter, "names": names})
        assert root(None, INIT) == {"counter": 0, "names": ()}

    def test_each_slice_sees_only_its_state(self):
        seen = {}

        def spy(name):
            def reducer(state, action):
                seen[name] = state
                return state if state is not None else name
            return reducer

        root = combine_reducers({"a": spy("a"), "b": spy("b")})
        state = root({"a": "A", "b": "B"}, Action("X"))

        assert seen == {"a": "A", "b": "B"}
        assert state == {"a": "A", "b": "B"}

    def test_root_is_new_dict_and_slices_keep_identity(self):
        root = combine_reducers({"counter": counter, "names": names})
        state = {"counter": 3, "names": ("ada",)}

        next_state = root(state, Action("NOOP"))

        assert next_state is not state
        assert next_state["names"] is state["names"]

    def test_non_callable_reducer_rejected(self):
        with pytest.raises(TypeError, match="names"):
            combine_reducers({"counter": counter, "names": {}})

    def test_unknown_keys_dropped_with_single_warning(self, caplog):
        root = combine_reducers({"counter": counter})

        with caplog.at_level(logging.WARNING, logger="statebus.reducers"):
            first = root({"counter": 1, "stale": True}, Action("NOOP"))
            root({"counter": 1, "stale": True}, Action("NOOP"))

        assert first == {"counter": 1}
        warnings = [r for r in caplog.records if "stale" in r.getMessage()]
        assert len(warnings) == 1

    def test_slice_error_propagates(self):
        def broken(state, action):
            if action.type == "BREAK":
                raise KeyError("slice")
            return 0

        root = combine_reducers({"broken": broken})

        with pytest.raises(KeyError):
            root({"broken": 0}, Action("BREAK"))
