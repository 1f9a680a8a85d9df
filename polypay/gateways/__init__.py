"""Payment gateway interfaces and registry."""

from .base import AbstractGateway, PaymentGateway, SupportsVerification
from .registry import ENTRY_POINT_GROUP, GatewayDescriptor, GatewayRegistry


__all__ = [
    "ENTRY_POINT_GROUP",
    "AbstractGateway",
    "GatewayDescriptor",
    "GatewayRegistry",
    "PaymentGateway",
    "SupportsVerification",
]
