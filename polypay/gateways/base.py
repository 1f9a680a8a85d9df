"""Interfaces that payment gateways implement.

Gateways are external collaborators: the core only needs a name, display
configuration and a ``pay`` operation. Verification is an optional capability
expressed by :class:`SupportsVerification`; the payment manager checks it by
membership (``isinstance``) before delegating.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from polypay.exceptions import UnsupportedFeatureError
from polypay.models import GatewayConfig


class PaymentGateway(ABC):
    """Abstract interface for payment gateways."""

    @abstractmethod
    def name(self) -> str:
        """Get the unique gateway name used for registration and selection."""

    @abstractmethod
    def config(self) -> GatewayConfig | Mapping[str, Any]:
        """Get display configuration for the gateway."""

    @abstractmethod
    def pay(self, request: Any) -> Any:
        """Process a payment.

        Args:
            request: Payment request DTO

        Returns:
            Result DTO. Transport failures are expected to be reported through
            the result rather than raised.
        """


class SupportsVerification(ABC):
    """Capability for gateways that can verify a payment."""

    @abstractmethod
    def verify(self, request: Any) -> Any:
        """Verify a payment.

        Args:
            request: Verification request DTO

        Returns:
            Verification result DTO
        """


class AbstractGateway(PaymentGateway):
    """Convenience base whose operations raise ``UnsupportedFeatureError``.

    Subclasses override the operations they support. Overriding ``verify``
    alone does not advertise verification; subclass
    :class:`SupportsVerification` as well.
    """

    def config(self) -> GatewayConfig | Mapping[str, Any]:
        return GatewayConfig(display_name=self.name())

    def pay(self, request: Any) -> Any:
        raise UnsupportedFeatureError(self.name(), "pay")

    def verify(self, request: Any) -> Any:
        raise UnsupportedFeatureError(self.name(), "verify")


__all__ = ["AbstractGateway", "PaymentGateway", "SupportsVerification"]
