"""Single state tree updated by dispatching actions through a root reducer."""

from collections import deque
from typing import Any, Callable, Deque, Optional
import logging

from statebus.core.event_bus import EventBus, Unsubscribe
from statebus.core.exceptions import InvalidActionError, ListenerError, ReducerPurityError
from statebus.interfaces.actions import INIT, Action


# Type alias for reducers: (state, action) -> state
Reducer = Callable[[Any, Action], Any]

# Type alias for store subscribers, called with the new state
StateListener = Callable[[Any], Any]

# Store subscribers are kept on a private bus under this channel
_STATE_CHANNEL = "state"


class DispatchQueue:
    """
    Reentrancy guard for Store.dispatch.

    While a dispatch is active (reducing or notifying), further actions are
    deferred here and drained in FIFO order by the outermost dispatch once
    its subscriber pass has finished.
    """

    def __init__(self):
        self._pending: Deque[Action] = deque()
        self._active = False

    @property
    def active(self) -> bool:
        """True while a dispatch is in flight."""
        return self._active

    def acquire(self) -> bool:
        """
        Mark a dispatch as in flight.

        Returns:
            False if one already is (the caller must defer instead)
        """
        if self._active:
            return False
        self._active = True
        return True

    def defer(self, action: Action) -> None:
        """Queue an action behind the in-flight dispatch."""
        self._pending.append(action)

    def next(self) -> Optional[Action]:
        """Pop the oldest deferred action, or None when drained."""
        return self._pending.popleft() if self._pending else None

    def release(self) -> int:
        """
        Mark the in-flight dispatch as finished.

        Returns:
            Number of deferred actions that were still pending and got dropped
        """
        dropped = len(self._pending)
        self._pending.clear()
        self._active = False
        return dropped

    def __len__(self) -> int:
        return len(self._pending)


class Store:
    """
    Holder of the single application state tree.

    The state is replaced, never mutated, on every dispatch. Subscribers are
    notified synchronously in subscription order with the new state.

    Usage:
        store = create_store(combine_reducers({"counter": counter}))

        unsubscribe = store.subscribe(lambda state: print(state["counter"]))
        store.dispatch(Action("INC"))

        state = store.get_state()
    """

    def __init__(self, root_reducer: Reducer, initial_action: Action = INIT):
        """
        Initialize the store.

        The initial state is computed by reducing ``initial_action`` against
        a None state so reducers can supply their defaults.

        Args:
            root_reducer: Reducer for the whole state tree
            initial_action: Action used to compute the initial state
        """
        if not callable(root_reducer):
            raise TypeError(f"Root reducer must be callable, got {root_reducer!r}")

        self._reducer = root_reducer
        self._logger = logging.getLogger("statebus.store")
        self._subscribers = EventBus(error_handler=self._log_subscriber_error)
        self._queue = DispatchQueue()
        self._reducing: Optional[Action] = None
        self._dispatch_count = 0
        self._state: Any = None
        self._state = self._reduce(None, initial_action)

    # === Properties ===

    @property
    def is_dispatching(self) -> bool:
        """True while a dispatch is reducing or notifying subscribers."""
        return self._queue.active

    @property
    def is_reducing(self) -> bool:
        """True while the root reducer is running."""
        return self._reducing is not None

    @property
    def dispatch_count(self) -> int:
        """Number of actions applied since creation."""
        return self._dispatch_count

    @property
    def subscriber_count(self) -> int:
        """Number of active subscriptions."""
        return self._subscribers.listener_count(_STATE_CHANNEL)

    @property
    def pending_count(self) -> int:
        """Number of deferred actions waiting behind the in-flight dispatch."""
        return len(self._queue)

    # === Public API ===

    def get_state(self) -> Any:
        """
        Get the current state.

        Returns:
            Current state reference (callers must not mutate it)
        """
        return self._state

    def dispatch(self, action: Action) -> Action:
        """
        Reduce an action and notify subscribers.

        If a dispatch is already notifying subscribers, the action is queued
        and applied after that pass completes.

        Args:
            action: Action to apply

        Returns:
            The action

        Raises:
            InvalidActionError: If action is not an Action
            ReducerPurityError: If called from inside a reducer
            Exception: Whatever the reducer raised; the state is unchanged
        """
        if not isinstance(action, Action):
            raise InvalidActionError(action)

        if self._reducing is not None:
            raise ReducerPurityError("dispatch actions", self._reducing.type)

        if not self._queue.acquire():
            self._queue.defer(action)
            self._logger.debug(f"Dispatch deferred: {action.type} ({len(self._queue)} pending)")
            return action

        try:
            self._apply(action)
            self._drain()
        finally:
            dropped = self._queue.release()
            if dropped:
                self._logger.warning(f"Dropped {dropped} deferred actions after an interrupted dispatch")

        return action

    def subscribe(self, listener: StateListener) -> Unsubscribe:
        """
        Subscribe to state changes.

        Args:
            listener: Called with the new state after every dispatch

        Returns:
            Callable removing this subscription only (idempotent)
        """
        return self._subscribers.on(_STATE_CHANNEL, listener)

    def watch(
        self,
        selector: Callable[[Any], Any],
        callback: Callable[[Any, Any], Any]
    ) -> Unsubscribe:
        """
        Subscribe to changes of one selected value.

        The callback only runs when the selected value is a different object
        than the last one seen, which is what unchanged slices rely on.

        Args:
            selector: Function extracting a value from the state
            callback: Called as callback(new_value, old_value)

        Returns:
            Callable removing the subscription
        """
        last = [selector(self._state)]

        def listener(state: Any) -> None:
            selected = selector(state)
            previous = last[0]
            if selected is previous:
                return
            last[0] = selected
            callback(selected, previous)

        return self.subscribe(listener)

    # === Internals ===

    def _reduce(self, state: Any, action: Action) -> Any:
        self._reducing = action
        try:
            return self._reducer(state, action)
        finally:
            self._reducing = None

    def _apply(self, action: Action) -> None:
        next_state = self._reduce(self._state, action)
        self._state = next_state
        self._dispatch_count += 1
        self._logger.debug(f"Action applied: {action.type}")
        self._subscribers.emit(_STATE_CHANNEL, next_state)

    def _drain(self) -> None:
        while True:
            action = self._queue.next()
            if action is None:
                return
            try:
                self._apply(action)
            except Exception as e:
                # The caller of a deferred dispatch has already returned
                self._logger.error(
                    f"Deferred action {action.type} failed, state left unchanged: {e}",
                    exc_info=True
                )

    def _log_subscriber_error(self, error: ListenerError) -> None:
        self._logger.error(str(error), exc_info=error.cause)


def create_store(root_reducer: Reducer, initial_action: Action = INIT) -> Store:
    """
    Create a store.

    Args:
        root_reducer: Reducer for the whole state tree
        initial_action: Action reduced once to compute the initial state

    Returns:
        New Store
    """
    return Store(root_reducer, initial_action)
