"""Process-wide context object owning the registries and the payment manager.

This replaces module-level singletons: the application builds one container at
startup and passes it (or its members) to whatever needs them, while tests
build as many isolated containers as they like.
"""

from dataclasses import dataclass

import structlog

from polypay.config.settings import Settings, load_settings
from polypay.core.logging import setup_logging
from polypay.gateways.registry import GatewayRegistry
from polypay.hooks.defaults import configure_default_slots
from polypay.hooks.registry import HookRegistry
from polypay.manager import PaymentManager


logger = structlog.get_logger(__name__)


@dataclass
class PaymentContainer:
    """Container for the shared PolyPay services."""

    settings: Settings
    gateways: GatewayRegistry
    hooks: HookRegistry
    manager: PaymentManager

    def reset(self) -> None:
        """Drop every gateway, handler and the current selection.

        Slot configuration is kept.
        """
        self.manager.reset()
        self.gateways.clear()
        self.hooks.clear()


def create_container(
    settings: Settings | None = None, configure_logging: bool = False
) -> PaymentContainer:
    """Build a container from settings.

    Configures the built-in hook slots, registers configured and entry point
    gateways, and selects the default gateway if one is configured.

    Args:
        settings: Settings to use; loaded from the environment when omitted
        configure_logging: Apply the logging settings via ``setup_logging``

    Returns:
        A fully wired container
    """
    if settings is None:
        settings = load_settings()

    if configure_logging:
        setup_logging(
            level=settings.logging.level,
            fmt=settings.logging.format,
            show_time=settings.logging.show_time,
        )

    gateways = GatewayRegistry()
    hooks = HookRegistry()
    manager = PaymentManager(gateways, hooks)

    configure_default_slots(
        hooks,
        strict_contracts=settings.hooks.strict_contracts,
        overrides=settings.hooks.slots,
    )

    gateways.register_from_settings(settings.gateways)

    if settings.load_entry_points:
        gateways.load_entry_points()

    if settings.default_gateway:
        manager.select_gateway(settings.default_gateway)

    logger.debug(
        "container_created",
        gateways=gateways.all(),
        default_gateway=settings.default_gateway,
        strict_contracts=settings.hooks.strict_contracts,
        category="config",
    )

    return PaymentContainer(
        settings=settings, gateways=gateways, hooks=hooks, manager=manager
    )


__all__ = ["PaymentContainer", "create_container"]
