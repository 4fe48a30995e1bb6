"""Wiring of the overlay application."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from statebus.core.kernel import Kernel
from statebus.interfaces.surface import RenderSurface
from statebus.overlay.channels import COMMANDS, NOTIFICATIONS
from statebus.overlay.components import ContentPanel, ItemList, PanelControls, StatusBar
from statebus.overlay.services import (
    CatalogFetcher,
    ContentService,
    Fetcher,
    PanelService,
    SelectionService,
    SettingsService,
)
from statebus.overlay.slices import overlay_reducers
from statebus.overlay.surface import HeadlessSurface


@dataclass
class OverlayApp:
    """A wired overlay: kernel plus the surface its components draw on."""

    kernel: Kernel
    surface: RenderSurface

    @property
    def content_service(self) -> ContentService:
        return self.kernel.services.require("content")

    def start(self) -> None:
        self.kernel.start()

    def stop(self) -> None:
        self.kernel.stop()

    async def settle(self) -> None:
        """Wait for outstanding content loads."""
        await self.content_service.wait_idle()


def build_app(
    config_path: Optional[Path] = None,
    config: Optional[Dict[str, Any]] = None,
    surface: Optional[RenderSurface] = None,
    fetcher: Optional[Fetcher] = None
) -> OverlayApp:
    """
    Build the overlay application (not started).

    Args:
        config_path: Path to configuration file
        config: Configuration overrides
        surface: Rendering surface (defaults to a HeadlessSurface)
        fetcher: Content fetcher (defaults to serving overlay.catalog)

    Returns:
        OverlayApp ready for start()
    """
    kernel = Kernel(overlay_reducers(), config_path, config)
    kernel.router.declare(*COMMANDS, *NOTIFICATIONS)

    if surface is None:
        surface = HeadlessSurface()
    if fetcher is None:
        fetcher = CatalogFetcher(
            kernel.get_config("overlay.catalog", {}),
            latency_ms=kernel.get_config("services.content.latency_ms", 0)
        )

    # Registration order is not initialization order: content waits for settings
    kernel.register_service(ContentService(kernel, fetcher))
    kernel.register_service(SelectionService(kernel))
    kernel.register_service(PanelService(kernel))
    kernel.register_service(SettingsService(kernel))

    kernel.register_component(PanelControls(kernel, surface))
    kernel.register_component(ItemList(kernel, surface))
    kernel.register_component(ContentPanel(kernel, surface))
    kernel.register_component(StatusBar(kernel, surface))

    return OverlayApp(kernel, surface)
