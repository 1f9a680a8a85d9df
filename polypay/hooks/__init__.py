"""Hook system for PolyPay.

This package provides the lifecycle hook registry that lets applications
observe and transform payments without modifying gateways.

Key components:
- HookSlot: Enumeration of the built-in lifecycle slots
- ReturnPolicy: How handler return values are treated
- HookRegistry: Registry for configuring slots and executing handlers
- Contracts: Capability ABCs for the built-in slots
"""

from .contracts import (
    SLOT_CONTRACTS,
    AfterPaymentFailedContract,
    AfterPaymentSuccessContract,
    BeforePaymentProcessContract,
)
from .defaults import configure_default_slots
from .events import HookSlot, ReturnPolicy
from .registry import HandlerDescriptor, HandlerKind, HookRegistry, SlotConfig


__all__ = [
    "SLOT_CONTRACTS",
    "AfterPaymentFailedContract",
    "AfterPaymentSuccessContract",
    "BeforePaymentProcessContract",
    "HandlerDescriptor",
    "HandlerKind",
    "HookRegistry",
    "HookSlot",
    "ReturnPolicy",
    "SlotConfig",
    "configure_default_slots",
]
