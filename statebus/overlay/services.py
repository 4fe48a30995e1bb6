"""Services of the overlay application."""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set, Union

from statebus.interfaces.base_service import BaseService, ServiceInfo
from statebus.overlay.channels import (
    CONTENT_LOADED,
    ITEM_SELECTED,
    LOAD_CONTENT,
    SELECT_ITEM,
    SETTINGS_CHANGED,
    SHOW_PANELS,
    TOAST,
    TOGGLE_PANEL,
    UPDATE_SETTINGS,
)
from statebus.overlay.slices import (
    CONTENT_FAILED,
    CONTENT_RECEIVED,
    CONTENT_REQUESTED,
    ITEM_SELECT,
    PANEL_VISIBILITY_SET,
    PANELS_SHOWN,
    SETTINGS_UPDATE,
)


# Fetcher: (item_id, use_live_data) -> entries, or an awaitable of entries
Fetcher = Callable[[str, bool], Union[Sequence[str], Awaitable[Sequence[str]]]]


class SettingsService(BaseService):
    """Owns the settings slice and announces changes to it."""

    @property
    def service_info(self) -> ServiceInfo:
        return ServiceInfo(name="settings", description="Data source and refresh settings")

    def __init__(self, kernel, config=None):
        super().__init__(kernel, config)
        self.handle(UPDATE_SETTINGS, self._on_update)
        self.watch(lambda state: state["settings"], self._on_settings_changed)

    def on_initialize(self) -> None:
        # Seed the slice from configuration
        self._apply({
            "use_live_data": bool(self.get_config("use_live_data", False)),
            "refresh_interval": int(self.get_config("refresh_interval", 30)),
        })

    def _on_update(self, payload: Dict[str, Any]) -> None:
        self._apply(payload)

    def _apply(self, changes: Dict[str, Any]) -> None:
        """Apply the valid keys of a change set; an out-of-range interval is dropped alone."""
        changes = dict(changes)
        interval = changes.get("refresh_interval")
        if interval is not None:
            low = self.get_config("min_refresh_interval", 5)
            high = self.get_config("max_refresh_interval", 300)
            if not low <= interval <= high:
                del changes["refresh_interval"]
                self._reject(f"Refresh interval must be between {low} and {high} seconds, got {interval}")

        if changes:
            self.dispatch(SETTINGS_UPDATE(changes=changes))

    def _on_settings_changed(self, new: Dict[str, Any], old: Optional[Dict[str, Any]]) -> None:
        changed_source = old is not None and old["use_live_data"] != new["use_live_data"]
        self.notify(SETTINGS_CHANGED, settings=dict(new), data_source_changed=changed_source)

    def _reject(self, message: str) -> None:
        self.logger.warning(message)
        self.notify(TOAST, message=message, level="error")


class SelectionService(BaseService):
    """Validates selection requests against the known items."""

    @property
    def service_info(self) -> ServiceInfo:
        return ServiceInfo(name="selection", description="Current item selection")

    def __init__(self, kernel, config=None):
        super().__init__(kernel, config)
        self.handle(SELECT_ITEM, self._on_select)
        self.watch(lambda state: state["selection"], self._on_selection_changed)

    @property
    def items(self) -> List[str]:
        return list((self.kernel.get_config("overlay.catalog") or {}).keys())

    def _on_select(self, payload: Dict[str, Any]) -> None:
        item_id = payload["item_id"]
        if item_id not in self.items:
            message = f"Unknown item: {item_id}"
            self.logger.warning(message)
            self.notify(TOAST, message=message, level="error")
            return
        self.dispatch(ITEM_SELECT(item_id=item_id))

    def _on_selection_changed(self, new: Dict[str, Any], old: Optional[Dict[str, Any]]) -> None:
        self.notify(ITEM_SELECTED, item_id=new["selected_id"])


class PanelService(BaseService):
    """Panel visibility."""

    @property
    def service_info(self) -> ServiceInfo:
        return ServiceInfo(name="panels")

    def __init__(self, kernel, config=None):
        super().__init__(kernel, config)
        self.handle(TOGGLE_PANEL, self._on_toggle)
        self.handle(SHOW_PANELS, self._on_show)

    def _on_toggle(self, payload: Dict[str, Any]) -> None:
        panels = self.get_state()["panels"]
        panel_id = payload["panel_id"]
        if panel_id not in panels:
            self.logger.warning(f"Unknown panel: {panel_id}")
            return
        self.dispatch(PANEL_VISIBILITY_SET(panel_id=panel_id, visible=not panels[panel_id]))

    def _on_show(self, payload: Dict[str, Any]) -> None:
        panels = self.get_state()["panels"]
        unknown = [panel_id for panel_id in payload["panel_ids"] if panel_id not in panels]
        if unknown:
            self.logger.warning(f"Unknown panels: {unknown}")
            return
        self.dispatch(PANELS_SHOWN(panel_ids=list(payload["panel_ids"])))


class ContentService(BaseService):
    """
    Loads item entries through an injected fetcher.

    The fetcher may be synchronous or return an awaitable; awaitables are
    scheduled on the running event loop. Every request carries a generation
    token, and a continuation whose token is no longer the latest is
    discarded, so a slow earlier load can never overwrite a newer one.
    """

    @property
    def service_info(self) -> ServiceInfo:
        return ServiceInfo(
            name="content",
            description="Item entries",
            dependencies={"settings"},
        )

    def __init__(self, kernel, fetcher: Fetcher, config=None):
        super().__init__(kernel, config)
        self._fetcher = fetcher
        self._generation = 0
        self._tasks: Set[asyncio.Future] = set()
        self._discarded = 0
        self.handle(LOAD_CONTENT, self._on_load)

    @property
    def generation(self) -> int:
        """Token of the latest request."""
        return self._generation

    @property
    def discarded(self) -> int:
        """Number of stale results dropped so far."""
        return self._discarded

    @property
    def pending_loads(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait until every scheduled load has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_load(self, payload: Dict[str, Any]) -> None:
        item_id = payload["item_id"]
        self._generation += 1
        generation = self._generation

        use_live_data = self.get_state()["settings"]["use_live_data"]
        self.dispatch(CONTENT_REQUESTED(item_id=item_id, generation=generation))

        try:
            result = self._fetcher(item_id, use_live_data)
        except Exception as e:
            self._finish(item_id, generation, error=e)
            return

        if not inspect.isawaitable(result):
            self._finish(item_id, generation, entries=result)
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(result):
                result.close()
            self._finish(item_id, generation, error=RuntimeError("no running event loop"))
            return

        task = loop.create_task(self._await(item_id, generation, result))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _await(self, item_id: str, generation: int, pending: Awaitable) -> None:
        try:
            entries = await pending
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._finish(item_id, generation, error=e)
        else:
            self._finish(item_id, generation, entries=entries)

    def _finish(
        self,
        item_id: str,
        generation: int,
        entries: Optional[Sequence[str]] = None,
        error: Optional[BaseException] = None
    ) -> None:
        if generation != self._generation:
            self._discarded += 1
            self.logger.debug(f"Discarding stale load of {item_id} (generation {generation})")
            return

        if error is not None:
            self.logger.warning(f"Loading {item_id} failed: {error}")
            self.dispatch(CONTENT_FAILED(item_id=item_id, generation=generation, error=str(error)))
            self.notify(TOAST, message=f"Could not load {item_id}", level="error")
            return

        entries = list(entries or [])
        self.dispatch(CONTENT_RECEIVED(item_id=item_id, generation=generation, entries=entries))
        self.notify(CONTENT_LOADED, item_id=item_id, count=len(entries))


class CatalogFetcher:
    """
    Fetcher serving entries from the configured catalog.

    Stands in for the remote data source; ``latency_ms`` simulates a slow
    call. Live mode is served from the same catalog.
    """

    def __init__(self, catalog: Dict[str, Sequence[str]], latency_ms: int = 0):
        self._catalog = {key: list(value) for key, value in (catalog or {}).items()}
        self._latency = max(latency_ms, 0) / 1000.0

    async def __call__(self, item_id: str, use_live_data: bool) -> List[str]:
        if self._latency:
            await asyncio.sleep(self._latency)
        if item_id not in self._catalog:
            raise KeyError(item_id)
        return list(self._catalog[item_id])
