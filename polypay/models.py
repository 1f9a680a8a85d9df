"""Base data transfer objects exchanged between the core, hooks and gateways.

The core never interprets these fields. Concrete gateways subclass them to add
provider-specific payload fields; extra fields are accepted so hooks can attach
markers to a request on its way to the gateway.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BaseDTO(BaseModel):
    """Permissive base for all DTOs."""

    model_config = ConfigDict(extra="allow", validate_assignment=True)


class Payment(BaseDTO):
    """Payment request handed to a gateway's ``pay`` operation."""

    id: str | None = None
    customer_id: str | None = None
    amount: str | None = None
    currency: str | None = None
    phone_number: str | None = None
    email: str | None = None


class PaymentResult(BaseDTO):
    """Outcome of a gateway ``pay`` call."""

    gateway: str | None = None
    success: bool = False
    response: Any = Field(default_factory=dict)
    message: str | None = None
    errors: list[Any] | None = Field(default_factory=list)
    payment_url: str | None = None


class PaymentVerification(BaseDTO):
    """Verification request for a previously initiated payment."""

    transaction_id: str | None = None


class VerificationResult(BaseDTO):
    """Outcome of a gateway ``verify`` call."""

    gateway: str | None = None
    success: bool = False
    message: str | None = None
    response: Any = Field(default_factory=dict)


class GatewayConfig(BaseDTO):
    """Display information a gateway reports about itself."""

    display_name: str = ""
    description: str | None = None
    logo_url: str | None = None


__all__ = [
    "BaseDTO",
    "GatewayConfig",
    "Payment",
    "PaymentResult",
    "PaymentVerification",
    "VerificationResult",
]
