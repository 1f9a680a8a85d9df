"""Hook slot configuration settings."""

from pydantic import BaseModel, ConfigDict, Field

from polypay.hooks.events import ReturnPolicy


class SlotSettings(BaseModel):
    """Configuration override for a single hook slot."""

    model_config = ConfigDict(validate_assignment=True)

    allow_multiple: bool = Field(
        default=True,
        description="Allow several handlers on the slot; if false a new handler replaces the old one",
    )

    default_priority: int = Field(
        default=0,
        description="Priority for handlers registered without one (higher runs first)",
    )

    return_policy: ReturnPolicy = Field(
        default=ReturnPolicy.IGNORE,
        description="'ignore' discards handler results, 'single' returns the handler's result",
    )

    contracts: list[str] = Field(
        default_factory=list,
        description="Import paths of contract classes every handler must implement",
    )


class HookSettings(BaseModel):
    """Hook system configuration."""

    model_config = ConfigDict(validate_assignment=True)

    strict_contracts: bool = Field(
        default=False,
        description="Require handlers on the built-in slots to implement the slot contract",
    )

    slots: dict[str, SlotSettings] = Field(
        default_factory=dict,
        description="Per-slot overrides keyed by slot name (e.g. 'before-process')",
    )
