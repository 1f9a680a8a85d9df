"""Payment coordinator tying gateway selection to lifecycle hooks.

The manager drives one request through
``before-process -> gateway.pay``. Success and failure hooks are fired
explicitly by the caller through :meth:`PaymentManager.report_success` and
:meth:`PaymentManager.report_failure`, since a gateway result may describe a
pending payment that is only finalised later.
"""

from collections.abc import Callable, Mapping
from typing import Any

import structlog

from polypay.exceptions import (
    GatewayNotFoundError,
    NoGatewaySelectedError,
    UnsupportedFeatureError,
)
from polypay.gateways.base import SupportsVerification
from polypay.gateways.registry import GatewayFactory, GatewayRegistry
from polypay.hooks.events import HookSlot
from polypay.hooks.registry import HookRegistry


logger = structlog.get_logger(__name__)


class PaymentManager:
    """Coordinates the selected gateway with the hook registry."""

    def __init__(self, gateways: GatewayRegistry, hooks: HookRegistry) -> None:
        """Initialize the payment manager.

        Args:
            gateways: Registry to resolve gateways from
            hooks: Registry to run lifecycle hooks on
        """
        self._gateways = gateways
        self._hooks = hooks
        self._selected_name: str | None = None

    @property
    def gateways(self) -> GatewayRegistry:
        return self._gateways

    @property
    def hooks(self) -> HookRegistry:
        return self._hooks

    # === Gateway management ===

    def register(
        self,
        name: str,
        factory: GatewayFactory,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        """Register a gateway factory. See ``GatewayRegistry.register``."""
        self._gateways.register(name, factory, metadata)

    def unregister(self, name: str) -> None:
        """Unregister a gateway, clearing the selection if it was selected."""
        self._gateways.unregister(name)
        if name.strip() == self._selected_name:
            self.reset()

    def gateway(self, name: str) -> Any:
        """Resolve a gateway instance without selecting it."""
        return self._gateways.get(name)

    def select_gateway(self, name: str) -> "PaymentManager":
        """Select the gateway used by ``pay``, ``verify`` and the report calls.

        Args:
            name: Registered gateway name

        Returns:
            The manager, for chaining

        Raises:
            GatewayNotFoundError: If the gateway is not registered
        """
        instance = self._gateways.get(name)
        name = name.strip()
        self._selected_name = name

        logger.debug(
            "gateway_selected",
            gateway=name,
            gateway_type=type(instance).__name__,
            category="payment",
        )
        return self

    @property
    def selected_gateway_name(self) -> str | None:
        return self._selected_name

    @property
    def has_selection(self) -> bool:
        return self._selected_name is not None

    def reset(self) -> None:
        """Clear the gateway selection."""
        self._selected_name = None

    # === Payment lifecycle ===

    def pay(self, request: Any) -> Any:
        """Process a payment through the selected gateway.

        The ``before-process`` slot runs first with ``(request, gateway_name)``.
        On a transform-style slot (single handler, ``SINGLE`` return policy) a
        non-``None`` return value replaces the request.

        Args:
            request: Payment request DTO

        Returns:
            Whatever the gateway's ``pay`` returns

        Raises:
            NoGatewaySelectedError: If no gateway is selected
        """
        name, gateway = self._current("pay")

        transformed = self._hooks.execute(HookSlot.BEFORE_PROCESS, request, name)
        if self._hooks.get_config(HookSlot.BEFORE_PROCESS).is_transform:
            if transformed is not None:
                request = transformed

        logger.info(
            "payment_processing",
            gateway=name,
            request_type=type(request).__name__,
            category="payment",
        )
        result = gateway.pay(request)
        logger.info(
            "payment_processed",
            gateway=name,
            success=getattr(result, "success", None),
            category="payment",
        )
        return result

    def verify(self, request: Any) -> Any:
        """Verify a payment through the selected gateway.

        Raises:
            NoGatewaySelectedError: If no gateway is selected
            UnsupportedFeatureError: If the gateway cannot verify payments
        """
        name, gateway = self._current("verify")
        if not isinstance(gateway, SupportsVerification):
            raise UnsupportedFeatureError(name, "verify")

        logger.info("payment_verifying", gateway=name, category="payment")
        return gateway.verify(request)

    def report_success(self, result: Any) -> Any:
        """Run the ``after-success`` slot for a payment result.

        Returns:
            The slot's ``execute`` result

        Raises:
            NoGatewaySelectedError: If no gateway is selected
            GatewayNotFoundError: If the selected gateway was unregistered
        """
        name, _ = self._current("report_success")
        logger.info("payment_succeeded", gateway=name, category="payment")
        return self._hooks.execute(HookSlot.AFTER_SUCCESS, result, name)

    def report_failure(self, result: Any) -> Any:
        """Run the ``after-failure`` slot for a payment result.

        Returns:
            The slot's ``execute`` result

        Raises:
            NoGatewaySelectedError: If no gateway is selected
            GatewayNotFoundError: If the selected gateway was unregistered
        """
        name, _ = self._current("report_failure")
        logger.info("payment_failed", gateway=name, category="payment")
        return self._hooks.execute(HookSlot.AFTER_FAILURE, result, name)

    # === Hook shortcuts ===

    def on_before_payment_process(self, handler: Any, priority: int | None = None) -> None:
        """Register a ``before-process`` handler."""
        self._hooks.register(HookSlot.BEFORE_PROCESS, handler, priority=priority)

    def on_after_payment_success(self, handler: Any, priority: int | None = None) -> None:
        """Register an ``after-success`` handler."""
        self._hooks.register(HookSlot.AFTER_SUCCESS, handler, priority=priority)

    def on_after_payment_failed(self, handler: Any, priority: int | None = None) -> None:
        """Register an ``after-failure`` handler."""
        self._hooks.register(HookSlot.AFTER_FAILURE, handler, priority=priority)

    # === Bulk operations ===

    def map(self, fn: Callable[[Any], Any]) -> list[Any]:
        """Apply ``fn`` to every registered gateway, instantiating each."""
        return [fn(self._gateways.get(name)) for name in self._gateways.all()]

    def filter(self, fn: Callable[[Any], Any]) -> dict[str, Any]:
        """Get the gateways for which ``fn`` is truthy, keyed by name."""
        selected: dict[str, Any] = {}
        for name in self._gateways.all():
            gateway = self._gateways.get(name)
            if fn(gateway):
                selected[name] = gateway
        return selected

    # === Helpers ===

    def _require_selection(self, operation: str) -> str:
        if self._selected_name is None:
            raise NoGatewaySelectedError(operation)
        return self._selected_name

    def _current(self, operation: str) -> tuple[str, Any]:
        # The registry owns the instance; only the name is held here
        name = self._require_selection(operation)
        try:
            gateway = self._gateways.get(name)
        except GatewayNotFoundError:
            self.reset()
            raise
        return name, gateway


__all__ = ["PaymentManager"]
