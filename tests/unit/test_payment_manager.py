"""Tests for the payment manager."""

from typing import Any

import pytest

from polypay.exceptions import (
    GatewayNotFoundError,
    NoGatewaySelectedError,
    UnsupportedFeatureError,
)
from polypay.gateways import SupportsVerification
from polypay.hooks import HookSlot, ReturnPolicy
from polypay.manager import PaymentManager
from polypay.models import Payment, PaymentResult, PaymentVerification
from tests.fixtures.gateways import MinimalGateway, RecordingGateway, VerifyingGateway
from tests.fixtures.hooks import (
    FailureObserver,
    MarkingBeforeHandler,
    NoneReturningBeforeHandler,
    RecordingHandler,
    SuccessObserver,
)


pytestmark = pytest.mark.unit


@pytest.fixture
def stripe(manager: PaymentManager) -> RecordingGateway:
    gateway = RecordingGateway("stripe")
    manager.register("stripe", lambda: gateway)
    return gateway


class TestSelection:
    """Test gateway selection."""

    def test_no_selection_initially(self, manager: PaymentManager) -> None:
        assert not manager.has_selection
        assert manager.selected_gateway_name is None

    def test_select_gateway(self, manager: PaymentManager, stripe: RecordingGateway) -> None:
        returned = manager.select_gateway("stripe")

        assert returned is manager
        assert manager.has_selection
        assert manager.selected_gateway_name == "stripe"

    def test_select_unknown_gateway(self, manager: PaymentManager) -> None:
        with pytest.raises(GatewayNotFoundError):
            manager.select_gateway("unknown")

        assert not manager.has_selection

    def test_failed_select_keeps_previous(
        self, manager: PaymentManager, stripe: RecordingGateway
    ) -> None:
        manager.select_gateway("stripe")

        with pytest.raises(GatewayNotFoundError):
            manager.select_gateway("unknown")

        assert manager.selected_gateway_name == "stripe"

    def test_reset(self, manager: PaymentManager, stripe: RecordingGateway) -> None:
        manager.select_gateway("stripe")

        manager.reset()

        assert not manager.has_selection

    def test_unregister_selected_clears_selection(
        self, manager: PaymentManager, stripe: RecordingGateway
    ) -> None:
        manager.select_gateway("stripe")

        manager.unregister("stripe")

        assert not manager.has_selection
        assert not manager.gateways.has("stripe")

    def test_unregister_other_keeps_selection(
        self, manager: PaymentManager, stripe: RecordingGateway
    ) -> None:
        manager.register("paypal", lambda: RecordingGateway("paypal"))
        manager.select_gateway("stripe")

        manager.unregister("paypal")

        assert manager.selected_gateway_name == "stripe"

    def test_gateway_lookup_does_not_select(
        self, manager: PaymentManager, stripe: RecordingGateway
    ) -> None:
        assert manager.gateway("stripe") is stripe
        assert not manager.has_selection

    def test_selection_follows_reregistration(
        self, manager: PaymentManager, stripe: RecordingGateway, payment: Payment
    ) -> None:
        manager.select_gateway("stripe")
        replacement = RecordingGateway("stripe-v2")
        manager.register("stripe", lambda: replacement)

        manager.pay(payment)

        assert replacement.requests == [payment]
        assert stripe.requests == []

    def test_registry_removal_behind_manager_resets_selection(
        self, manager: PaymentManager, stripe: RecordingGateway, payment: Payment
    ) -> None:
        manager.select_gateway("stripe")
        manager.gateways.unregister("stripe")

        with pytest.raises(GatewayNotFoundError):
            manager.pay(payment)

        assert not manager.has_selection
        with pytest.raises(NoGatewaySelectedError):
            manager.pay(payment)

    def test_padded_name_selects_registered_gateway(
        self, manager: PaymentManager, payment: Payment
    ) -> None:
        gateway = RecordingGateway("stripe")
        manager.register(" stripe ", lambda: gateway)

        manager.select_gateway(" stripe ")
        manager.pay(payment)

        assert manager.selected_gateway_name == "stripe"
        assert gateway.requests == [payment]

        manager.unregister(" stripe ")
        assert not manager.has_selection


class TestPay:
    """Test the pay lifecycle."""

    def test_pay_without_selection(self, manager: PaymentManager, payment: Payment) -> None:
        with pytest.raises(NoGatewaySelectedError) as exc_info:
            manager.pay(payment)

        assert exc_info.value.operation == "pay"

    def test_pay_without_hooks_passes_request_through(
        self, manager: PaymentManager, stripe: RecordingGateway, payment: Payment
    ) -> None:
        manager.select_gateway("stripe")

        result = manager.pay(payment)

        assert isinstance(result, PaymentResult)
        assert result.success
        assert result.gateway == "stripe"
        assert stripe.requests == [payment]

    def test_before_process_transform_replaces_request(
        self, manager: PaymentManager, stripe: RecordingGateway, payment: Payment
    ) -> None:
        manager.on_before_payment_process(MarkingBeforeHandler)
        manager.select_gateway("stripe")

        manager.pay(payment)

        (sent,) = stripe.requests
        assert sent is not payment
        assert sent.marker == "seen-by-stripe"
        assert sent.id == payment.id

    def test_before_process_returning_none_keeps_request(
        self, manager: PaymentManager, stripe: RecordingGateway, payment: Payment
    ) -> None:
        manager.on_before_payment_process(NoneReturningBeforeHandler)
        manager.select_gateway("stripe")

        manager.pay(payment)

        assert stripe.requests == [payment]
        assert NoneReturningBeforeHandler.seen == [(payment, "stripe")]

    def test_before_process_registration_replaces_previous(
        self, manager: PaymentManager, stripe: RecordingGateway, payment: Payment
    ) -> None:
        log: list[str] = []
        manager.on_before_payment_process(RecordingHandler("first", log))
        manager.on_before_payment_process(MarkingBeforeHandler)
        manager.select_gateway("stripe")

        manager.pay(payment)

        assert log == []
        assert stripe.requests[0].marker == "seen-by-stripe"

    def test_ignore_policy_does_not_replace_request(
        self, manager: PaymentManager, stripe: RecordingGateway, payment: Payment
    ) -> None:
        manager.hooks.configure_slot(HookSlot.BEFORE_PROCESS, allow_multiple=True)
        manager.on_before_payment_process(MarkingBeforeHandler)
        manager.select_gateway("stripe")

        manager.pay(payment)

        assert stripe.requests == [payment]

    def test_hook_error_aborts_payment(
        self, manager: PaymentManager, stripe: RecordingGateway, payment: Payment
    ) -> None:
        def reject(request: Any, gateway_name: str) -> None:
            raise ValueError("blocked customer")

        manager.on_before_payment_process(reject)
        manager.select_gateway("stripe")

        with pytest.raises(ValueError, match="blocked customer"):
            manager.pay(payment)

        assert stripe.requests == []

    def test_pay_does_not_fire_after_hooks(
        self, manager: PaymentManager, stripe: RecordingGateway, payment: Payment
    ) -> None:
        success = SuccessObserver()
        failure = FailureObserver()
        manager.on_after_payment_success(success)
        manager.on_after_payment_failed(failure)
        manager.select_gateway("stripe")

        manager.pay(payment)

        assert success.results == []
        assert failure.results == []

    def test_unsupported_pay(self, manager: PaymentManager, payment: Payment) -> None:
        manager.register("minimal", MinimalGateway)
        manager.select_gateway("minimal")

        with pytest.raises(UnsupportedFeatureError) as exc_info:
            manager.pay(payment)

        assert exc_info.value.feature == "pay"


class TestVerify:
    """Test verification delegation."""

    def test_verify_without_selection(self, manager: PaymentManager) -> None:
        with pytest.raises(NoGatewaySelectedError):
            manager.verify(PaymentVerification(transaction_id="tx-1"))

    def test_verify_delegates(self, manager: PaymentManager) -> None:
        gateway = VerifyingGateway("paypal")
        manager.register("paypal", lambda: gateway)
        manager.select_gateway("paypal")
        request = PaymentVerification(transaction_id="tx-1")

        result = manager.verify(request)

        assert result.success
        assert result.response == {"transaction_id": "tx-1"}
        assert gateway.verifications == [request]

    def test_verify_requires_capability(
        self, manager: PaymentManager, stripe: RecordingGateway
    ) -> None:
        manager.select_gateway("stripe")

        with pytest.raises(UnsupportedFeatureError) as exc_info:
            manager.verify(PaymentVerification(transaction_id="tx-1"))

        assert exc_info.value.gateway == "stripe"
        assert exc_info.value.feature == "verify"

    def test_verify_method_without_capability_is_not_used(
        self, manager: PaymentManager
    ) -> None:
        class DuckVerifier(RecordingGateway):
            def verify(self, request: Any) -> str:
                return "should not be called"

        manager.register("duck", lambda: DuckVerifier("duck"))
        manager.select_gateway("duck")

        with pytest.raises(UnsupportedFeatureError):
            manager.verify(PaymentVerification(transaction_id="tx-1"))


class TestReporting:
    """Test the explicit success and failure reports."""

    def test_report_success_runs_observers(
        self, manager: PaymentManager, stripe: RecordingGateway
    ) -> None:
        first = SuccessObserver()
        second = SuccessObserver()
        manager.on_after_payment_success(first, priority=1)
        manager.on_after_payment_success(second)
        manager.select_gateway("stripe")
        result = PaymentResult(gateway="stripe", success=True)

        assert manager.report_success(result) is None

        assert first.results == [(result, "stripe")]
        assert second.results == [(result, "stripe")]

    def test_report_failure_runs_observers(
        self, manager: PaymentManager, stripe: RecordingGateway
    ) -> None:
        observer = FailureObserver()
        manager.on_after_payment_failed(observer)
        manager.select_gateway("stripe")
        result = PaymentResult(gateway="stripe", success=False, message="declined")

        manager.report_failure(result)

        assert observer.results == [(result, "stripe")]

    def test_report_failure_without_handlers(
        self, manager: PaymentManager, stripe: RecordingGateway
    ) -> None:
        manager.select_gateway("stripe")

        assert manager.report_failure(PaymentResult(gateway="stripe")) is None

    @pytest.mark.parametrize("method", ["report_success", "report_failure"])
    def test_report_without_selection(self, manager: PaymentManager, method: str) -> None:
        with pytest.raises(NoGatewaySelectedError) as exc_info:
            getattr(manager, method)(PaymentResult())

        assert exc_info.value.operation == method

    @pytest.mark.parametrize("method", ["report_success", "report_failure"])
    def test_report_after_registry_removal_resets_selection(
        self, manager: PaymentManager, stripe: RecordingGateway, method: str
    ) -> None:
        success = SuccessObserver()
        failure = FailureObserver()
        manager.on_after_payment_success(success)
        manager.on_after_payment_failed(failure)
        manager.select_gateway("stripe")
        manager.gateways.unregister("stripe")

        with pytest.raises(GatewayNotFoundError):
            getattr(manager, method)(PaymentResult(gateway="stripe"))

        assert not manager.has_selection
        assert success.results == []
        assert failure.results == []

    def test_report_returns_slot_value_on_transform_slot(
        self, manager: PaymentManager, stripe: RecordingGateway
    ) -> None:
        manager.hooks.configure_slot(
            HookSlot.AFTER_SUCCESS, allow_multiple=False, return_policy=ReturnPolicy.SINGLE
        )
        manager.on_after_payment_success(lambda result, name: f"receipt:{name}")
        manager.select_gateway("stripe")

        assert manager.report_success(PaymentResult()) == "receipt:stripe"


class TestBulkOperations:
    """Test map and filter across registered gateways."""

    @pytest.fixture
    def populated(self, manager: PaymentManager) -> PaymentManager:
        manager.register("stripe", lambda: RecordingGateway("stripe"))
        manager.register("paypal", lambda: VerifyingGateway("paypal"))
        manager.register("mpesa", lambda: VerifyingGateway("mpesa"))
        return manager

    def test_map(self, populated: PaymentManager) -> None:
        assert populated.map(lambda g: g.name()) == ["stripe", "paypal", "mpesa"]

    def test_map_empty(self, manager: PaymentManager) -> None:
        assert manager.map(lambda g: g.name()) == []

    def test_filter(self, populated: PaymentManager) -> None:
        verifiers = populated.filter(lambda g: isinstance(g, SupportsVerification))

        assert list(verifiers) == ["paypal", "mpesa"]
        assert verifiers["paypal"] is populated.gateway("paypal")

    def test_filter_instantiates_each_gateway_once(self, populated: PaymentManager) -> None:
        populated.filter(lambda g: True)
        populated.map(lambda g: g)

        assert all(populated.gateways.is_instantiated(n) for n in populated.gateways.all())
