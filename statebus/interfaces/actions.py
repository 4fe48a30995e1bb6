"""Action types consumed by reducers."""

from dataclasses import dataclass, field
from typing import Any, Mapping

from statebus.interfaces.schema import EMPTY_SCHEMA, PayloadSchema


@dataclass(frozen=True)
class Action:
    """
    Tagged request to change state.

    Attributes:
        type: Action type name, matched by slice reducers
        payload: Action data (treated as read-only)
    """

    type: str
    payload: Mapping[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a payload value."""
        return self.payload.get(key, default)

    def __repr__(self) -> str:
        payload_repr = repr(dict(self.payload))
        if len(payload_repr) > 50:
            payload_repr = payload_repr[:47] + "..."
        return f"Action(type={self.type!r}, payload={payload_repr})"


@dataclass(frozen=True)
class ActionType:
    """
    Named action variant with a payload schema.

    Calling an ActionType builds an Action and validates its payload, so a
    malformed action never reaches the store.

    Usage:
        SELECT_ITEM = ActionType("selection/select", PayloadSchema.of(item_id=str))

        store.dispatch(SELECT_ITEM(item_id="logs"))

        def reducer(state, action):
            if SELECT_ITEM.matches(action):
                ...
    """

    name: str
    schema: PayloadSchema = EMPTY_SCHEMA
    description: str = ""

    def __call__(self, **payload: Any) -> Action:
        return Action(self.name, self.schema.validate(payload, self.name))

    def matches(self, action: Action) -> bool:
        """Check if an action is of this type."""
        return action.type == self.name


# Action the store reduces once to compute its initial state
INIT = Action("@@INIT")

