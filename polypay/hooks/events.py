"""Lifecycle slot and return policy definitions for the hook system."""

from enum import Enum


class HookSlot(str, Enum):
    """Lifecycle interception points around a payment"""

    # Runs before the gateway is called; may transform the request
    BEFORE_PROCESS = "before-process"

    # Reported explicitly by the caller once a result is final
    AFTER_SUCCESS = "after-success"
    AFTER_FAILURE = "after-failure"


class ReturnPolicy(str, Enum):
    """How ``HookRegistry.execute`` treats handler return values"""

    IGNORE = "ignore"
    SINGLE = "single"


SlotKey = HookSlot | str


def normalize_slot(slot: SlotKey) -> SlotKey:
    """Map known slot strings onto their ``HookSlot`` member.

    Unknown strings are returned unchanged so applications can define
    their own slots.
    """
    if isinstance(slot, HookSlot):
        return slot
    try:
        return HookSlot(slot)
    except ValueError:
        return slot
