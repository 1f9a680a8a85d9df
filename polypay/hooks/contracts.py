"""Capability contracts for the built-in payment lifecycle slots.

A contract is an abstract base class. A handler satisfies it by subclassing it
or by being registered against it with ``Contract.register(cls)``; the hook
registry checks membership with ``issubclass``/``isinstance``, never by
probing for methods.
"""

from abc import ABC, abstractmethod
from typing import Any

from .events import HookSlot


class BeforePaymentProcessContract(ABC):
    """Transforms a payment request before it reaches the gateway."""

    @abstractmethod
    def handle(self, request: Any, gateway_name: str) -> Any:
        """Return the (possibly modified) request.

        Args:
            request: Payment request about to be sent
            gateway_name: Name of the selected gateway

        Returns:
            The request to send to the gateway
        """


class AfterPaymentSuccessContract(ABC):
    """Observes a successful payment result."""

    @abstractmethod
    def handle(self, result: Any, gateway_name: str) -> Any:
        """React to a successful payment."""


class AfterPaymentFailedContract(ABC):
    """Observes a failed payment result."""

    @abstractmethod
    def handle(self, result: Any, gateway_name: str) -> Any:
        """React to a failed payment."""


SLOT_CONTRACTS: dict[HookSlot, type] = {
    HookSlot.BEFORE_PROCESS: BeforePaymentProcessContract,
    HookSlot.AFTER_SUCCESS: AfterPaymentSuccessContract,
    HookSlot.AFTER_FAILURE: AfterPaymentFailedContract,
}


__all__ = [
    "AfterPaymentFailedContract",
    "AfterPaymentSuccessContract",
    "BeforePaymentProcessContract",
    "SLOT_CONTRACTS",
]
