"""Core utilities shared across PolyPay modules."""

from .imports import import_string
from .logging import setup_logging


__all__ = ["import_string", "setup_logging"]
