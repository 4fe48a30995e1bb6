"""Overlay demo application built on the statebus kernel."""

from statebus.overlay.app import OverlayApp, build_app
from statebus.overlay.surface import HeadlessSurface

__all__ = ["OverlayApp", "build_app", "HeadlessSurface"]
