"""Reducer composition."""

from typing import Any, Dict, Mapping, Optional
import logging

from statebus.core.store import Reducer
from statebus.interfaces.actions import Action


def combine_reducers(reducers: Mapping[str, Reducer]) -> Reducer:
    """
    Combine slice reducers into one root reducer.

    The root state is a dict keyed by slice name. For every action each slice
    reducer runs independently on its own slice. A slice reducer that returns
    the object it was given leaves that entry reference-identical in the new
    root, so consumers can skip work with an ``is`` check. The root itself is
    always a new dict.

    Keys present in the incoming state without a reducer are dropped, with a
    warning logged once per key.

    Args:
        reducers: Mapping of slice name -> slice reducer

    Returns:
        Root reducer

    Raises:
        TypeError: If a slice reducer is not callable
    """
    slices: Dict[str, Reducer] = {}
    for name, reducer in reducers.items():
        if not callable(reducer):
            raise TypeError(f"Reducer for slice '{name}' must be callable, got {reducer!r}")
        slices[name] = reducer

    logger = logging.getLogger("statebus.reducers")
    warned = set()

    def root_reducer(state: Optional[Mapping[str, Any]], action: Action) -> Dict[str, Any]:
        previous = state or {}

        unexpected = [key for key in previous if key not in slices and key not in warned]
        if unexpected:
            warned.update(unexpected)
            logger.warning(f"Ignoring state keys without a reducer: {unexpected}")

        return {
            name: reducer(previous.get(name), action)
            for name, reducer in slices.items()
        }

    return root_reducer
