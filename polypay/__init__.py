"""PolyPay: pluggable payment gateways and lifecycle hooks.

Key components:
- GatewayRegistry: Named, lazily instantiated gateway factories
- HookRegistry: Priority-ordered lifecycle handlers with per-slot policies
- PaymentManager: Coordinates the selected gateway with the hooks
- create_container: Builds all of the above from settings
"""

from .container import PaymentContainer, create_container
from .exceptions import (
    ConfigurationError,
    GatewayNotFoundError,
    HookValidationError,
    InvalidConfigError,
    InvalidNameError,
    NoGatewaySelectedError,
    PolyPayError,
    RegistrationError,
    SlotEmptyError,
    UnsupportedFeatureError,
)
from .gateways import (
    AbstractGateway,
    GatewayRegistry,
    PaymentGateway,
    SupportsVerification,
)
from .hooks import (
    AfterPaymentFailedContract,
    AfterPaymentSuccessContract,
    BeforePaymentProcessContract,
    HookRegistry,
    HookSlot,
    ReturnPolicy,
)
from .manager import PaymentManager


__version__ = "0.1.0"

__all__ = [
    "AbstractGateway",
    "AfterPaymentFailedContract",
    "AfterPaymentSuccessContract",
    "BeforePaymentProcessContract",
    "ConfigurationError",
    "GatewayNotFoundError",
    "GatewayRegistry",
    "HookRegistry",
    "HookSlot",
    "HookValidationError",
    "InvalidConfigError",
    "InvalidNameError",
    "NoGatewaySelectedError",
    "PaymentContainer",
    "PaymentGateway",
    "PaymentManager",
    "PolyPayError",
    "RegistrationError",
    "ReturnPolicy",
    "SlotEmptyError",
    "SupportsVerification",
    "UnsupportedFeatureError",
    "create_container",
]
