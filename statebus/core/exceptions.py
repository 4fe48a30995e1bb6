"""Custom exceptions for statebus."""

from typing import Any, List, Optional


class StatebusError(Exception):
    """Base exception for all statebus errors."""
    pass


# === Bus / Store ===


class ListenerError(StatebusError):
    """
    Raised (and caught) when a bus listener or store subscriber fails.

    Never propagates out of ``emit`` or ``dispatch``; it is handed to the
    owner's error handler so the remaining listeners still run.
    """

    def __init__(self, channel: str, listener: Any, cause: BaseException):
        self.channel = channel
        self.listener = listener
        self.cause = cause
        name = getattr(listener, "__qualname__", repr(listener))
        super().__init__(f"Listener {name} on '{channel}' failed: {cause!r}")


class ReducerError(StatebusError):
    """Base exception for reducer contract violations."""
    pass


class ReducerPurityError(ReducerError):
    """Raised when a reducer body tries to dispatch or send a command."""

    def __init__(self, operation: str, action_type: Optional[str] = None):
        self.operation = operation
        self.action_type = action_type
        during = f" while reducing '{action_type}'" if action_type else ""
        super().__init__(f"Reducers may not {operation}{during}")


class InvalidActionError(StatebusError, TypeError):
    """Raised when something other than an Action is dispatched."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Expected an Action, got {type(value).__name__}: {value!r}")


class PayloadValidationError(StatebusError, ValueError):
    """Raised when an action or channel payload does not match its schema."""

    def __init__(self, subject: str, errors: List[str]):
        self.subject = subject
        self.errors = errors
        super().__init__(f"Invalid payload for '{subject}': {'; '.join(errors)}")


# === Registries ===


class RegistryError(StatebusError):
    """Base exception for registry errors."""
    pass


class DuplicateRegistrationError(RegistryError):
    """Raised in strict mode when a name is registered twice."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"{kind.capitalize()} '{name}' is already registered")


class ServiceNotFoundError(RegistryError):
    """Raised when a requested service is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Service '{name}' not found")


class ComponentNotFoundError(RegistryError):
    """Raised when a requested component is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Component '{name}' not found")


class DependencyError(RegistryError):
    """Raised when the declared initialization order cannot be resolved."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Cannot order '{name}': {reason}")


class ServiceInitializationError(RegistryError):
    """Raised when a service's initialize() fails."""

    def __init__(self, name: str, cause: BaseException):
        self.name = name
        self.cause = cause
        super().__init__(f"Failed to initialize service '{name}': {cause}")


# === Channels ===


class ChannelError(StatebusError):
    """Base exception for command/notification channel errors."""
    pass


class ChannelCollisionError(ChannelError):
    """Raised when one channel name is used both as command and notification."""

    def __init__(self, name: str, existing_kind: str, requested_kind: str):
        self.name = name
        self.existing_kind = existing_kind
        self.requested_kind = requested_kind
        super().__init__(
            f"Channel '{name}' is already declared as a {existing_kind}, "
            f"cannot reuse it as a {requested_kind}"
        )


class CommandOwnershipError(ChannelError):
    """Raised when a second handler claims a command channel."""

    def __init__(self, channel: str, owner: str, claimant: str):
        self.channel = channel
        self.owner = owner
        self.claimant = claimant
        super().__init__(
            f"Command '{channel}' is already handled by '{owner}', "
            f"'{claimant}' cannot claim it"
        )


class UnhandledCommandError(ChannelError):
    """Raised for a command without handler when policy is 'raise'."""

    def __init__(self, channel: str):
        self.channel = channel
        super().__init__(f"No handler registered for command '{channel}'")


# === Configuration ===


class ConfigError(StatebusError):
    """Base exception for configuration errors."""
    pass


class ConfigNotFoundError(ConfigError):
    """Raised when configuration file is not found."""

    def __init__(self, config_path: str):
        self.config_path = config_path
        super().__init__(f"Configuration file not found: {config_path}")


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails."""

    def __init__(self, errors: list):
        self.errors = errors
        super().__init__(f"Configuration validation failed: {errors}")
