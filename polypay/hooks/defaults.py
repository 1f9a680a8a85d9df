"""Default configuration of the built-in payment lifecycle slots."""

from collections.abc import Mapping
from typing import TYPE_CHECKING

import structlog

from .contracts import SLOT_CONTRACTS
from .events import HookSlot, ReturnPolicy
from .registry import HookRegistry


if TYPE_CHECKING:
    from polypay.config.hooks import SlotSettings


logger = structlog.get_logger(__name__)


def configure_default_slots(
    hooks: HookRegistry,
    strict_contracts: bool = False,
    overrides: "Mapping[str, SlotSettings] | None" = None,
) -> None:
    """Configure the before-process, after-success and after-failure slots.

    ``before-process`` is a single-handler transform slot whose return value
    replaces the payment request; the two ``after-*`` slots fan out to any
    number of observers and ignore return values.

    Args:
        hooks: Registry to configure
        strict_contracts: Require handlers to implement the slot's contract
        overrides: Per-slot settings applied after the defaults
    """
    for slot in HookSlot:
        transform = slot is HookSlot.BEFORE_PROCESS
        hooks.configure_slot(
            slot,
            allow_multiple=not transform,
            default_priority=0,
            return_policy=ReturnPolicy.SINGLE if transform else ReturnPolicy.IGNORE,
            required_contracts=[SLOT_CONTRACTS[slot]] if strict_contracts else None,
        )

    # Fields left unset in an override keep the slot's current value
    for slot_name, slot_settings in (overrides or {}).items():
        current = hooks.get_config(slot_name)
        given = slot_settings.model_fields_set
        contracts = (
            slot_settings.contracts or None
            if "contracts" in given
            else current.required_contracts
        )
        hooks.configure_slot(
            slot_name,
            allow_multiple=slot_settings.allow_multiple
            if "allow_multiple" in given
            else current.allow_multiple,
            default_priority=slot_settings.default_priority
            if "default_priority" in given
            else current.default_priority,
            return_policy=slot_settings.return_policy
            if "return_policy" in given
            else current.return_policy,
            required_contracts=contracts,
        )
        logger.debug(
            "hook_slot_override_applied",
            slot=slot_name,
            fields=sorted(given),
            category="config",
        )


__all__ = ["configure_default_slots"]
