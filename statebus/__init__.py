"""statebus - synchronous event bus, reducer store and lifecycle registries."""

__version__ = "0.3.0"
