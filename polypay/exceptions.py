"""Custom exceptions for the PolyPay core."""

from typing import Any


class PolyPayError(Exception):
    """Base exception for all PolyPay errors."""

    pass


class InvalidNameError(PolyPayError, ValueError):
    """Raised when a gateway is registered under an empty name."""

    pass


class InvalidConfigError(PolyPayError, ValueError):
    """Raised when a hook slot is configured with unrecognised values."""

    pass


class GatewayNotFoundError(PolyPayError, LookupError):
    """Raised when a gateway name has no registered descriptor."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Gateway '{name}' is not registered")


class SlotEmptyError(PolyPayError, LookupError):
    """Raised when handlers are requested for a slot that has none."""

    def __init__(self, slot: Any) -> None:
        self.slot = slot
        super().__init__(f"No handlers registered for slot '{slot}'")


class RegistrationError(PolyPayError):
    """Raised when a hook handler violates registration-time constraints."""

    pass


class HookValidationError(PolyPayError):
    """Raised when a handler fails its capability check at invocation time."""

    pass


class NoGatewaySelectedError(PolyPayError, RuntimeError):
    """Raised when the payment manager is used before a gateway is selected."""

    def __init__(self, operation: str = "pay") -> None:
        self.operation = operation
        super().__init__(
            f"No gateway selected; call select_gateway() before {operation}()"
        )


class UnsupportedFeatureError(PolyPayError, NotImplementedError):
    """Raised when a gateway lacks the capability for a delegated operation."""

    def __init__(self, gateway: str, feature: str) -> None:
        self.gateway = gateway
        self.feature = feature
        super().__init__(f"Gateway '{gateway}' does not support {feature}()")


class ConfigurationError(PolyPayError):
    """Raised when configuration loading or validation fails."""

    pass


__all__ = [
    "ConfigurationError",
    "GatewayNotFoundError",
    "HookValidationError",
    "InvalidConfigError",
    "InvalidNameError",
    "NoGatewaySelectedError",
    "PolyPayError",
    "RegistrationError",
    "SlotEmptyError",
    "UnsupportedFeatureError",
]
