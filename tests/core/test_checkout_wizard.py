"""Tests for the checkout wizard state machine."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from src.core.entities import (
    CheckoutSession,
    DiscountSpec,
    PaymentMethod,
    PaymentTender,
    StepId,
    SyncState,
)
from src.core.exceptions import (
    CheckoutError,
    CouponNotFoundError,
    CouponServiceUnavailableError,
    EmptyCartError,
    InsufficientFundsError,
    PaymentMethodRequiredError,
    SaleRejectedError,
    SessionConsumedError,
    StepGuardError,
    StepNotReachableError,
)
from src.core.interfaces import CouponValidation
from src.core.services import CheckoutWizard, ConfirmStatus, can_advance

TOTAL = Decimal("4700.00")  # 2 x soap (250) + 1 x rice (4200)


@pytest.fixture
def filled_cart(cart, products):
    cart.add(products["soap"])
    cart.add(products["soap"])
    cart.add(products["rice"])
    return cart


@pytest.fixture
def coupons() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def wizard(filled_cart, submitter, coupons) -> CheckoutWizard:
    return CheckoutWizard(cart=filled_cart, submitter=submitter, coupon_service=coupons)


def walk_to_review(wizard: CheckoutWizard, method: PaymentMethod = PaymentMethod.CASH) -> None:
    wizard.next_step()
    wizard.next_step()
    wizard.select_payment_method(method)
    wizard.next_step()
    wizard.next_step()


class TestCanAdvance:
    """Tests for the guard table."""

    def test_free_steps(self):
        session = CheckoutSession()
        for step in (StepId.ORDER_SUMMARY, StepId.DISCOUNT, StepId.CUSTOMER_INFO, StepId.REVIEW):
            assert can_advance(step, session)

    def test_single_payment_needs_method(self):
        session = CheckoutSession()
        assert not can_advance(StepId.PAYMENT_METHOD, session)
        session.payment_method = PaymentMethod.CASH
        assert can_advance(StepId.PAYMENT_METHOD, session)

    def test_split_payment_needs_positive_tenders(self):
        session = CheckoutSession(split_mode=True, payment_method=PaymentMethod.CASH)
        assert not can_advance(StepId.PAYMENT_METHOD, session)
        session.tenders.append(PaymentTender(method=PaymentMethod.CASH, amount=Decimal("1")))
        assert can_advance(StepId.PAYMENT_METHOD, session)

    def test_review_closed_after_confirm(self):
        assert not can_advance(StepId.REVIEW, CheckoutSession(confirmed=True))


class TestBegin:
    """Tests for starting and cancelling."""

    def test_empty_cart_refused(self, cart, submitter):
        with pytest.raises(EmptyCartError):
            CheckoutWizard(cart=cart, submitter=submitter).begin()

    def test_begin(self, wizard):
        session = wizard.begin()
        assert wizard.current_step == StepId.ORDER_SUMMARY
        assert wizard.is_active
        assert session.discount == DiscountSpec.none()

    def test_no_session(self, wizard):
        with pytest.raises(CheckoutError):
            wizard.next_step()

    def test_cancel_keeps_cart(self, wizard, filled_cart):
        wizard.begin()
        wizard.cancel()
        assert not wizard.is_active
        assert len(filled_cart) == 2
        with pytest.raises(CheckoutError):
            wizard.next_step()


class TestNavigation:
    """Tests for moving between steps."""

    def test_linear_advance(self, wizard):
        wizard.begin()
        assert wizard.next_step() == StepId.DISCOUNT
        assert wizard.next_step() == StepId.PAYMENT_METHOD

    def test_payment_requires_method(self, wizard):
        wizard.begin()
        wizard.next_step()
        wizard.next_step()
        with pytest.raises(PaymentMethodRequiredError):
            wizard.next_step()

    def test_split_requires_tender(self, wizard):
        wizard.begin()
        wizard.next_step()
        wizard.next_step()
        wizard.enable_split_payment()
        with pytest.raises(StepGuardError):
            wizard.next_step()

    def test_cannot_advance_past_review(self, wizard):
        wizard.begin()
        walk_to_review(wizard)
        with pytest.raises(StepGuardError):
            wizard.next_step()

    def test_previous_step(self, wizard):
        wizard.begin()
        assert wizard.previous_step() == StepId.ORDER_SUMMARY
        wizard.next_step()
        assert wizard.previous_step() == StepId.ORDER_SUMMARY

    def test_go_to_unvisited(self, wizard):
        wizard.begin()
        with pytest.raises(StepNotReachableError):
            wizard.go_to(StepId.REVIEW)

    def test_go_to_visited(self, wizard):
        wizard.begin()
        walk_to_review(wizard)
        assert wizard.go_to(StepId.DISCOUNT) == StepId.DISCOUNT
        assert wizard.go_to(StepId.REVIEW) == StepId.REVIEW

    def test_go_to_checks_intermediate_guards(self, wizard):
        wizard.begin()
        walk_to_review(wizard)
        wizard.go_to(StepId.PAYMENT_METHOD)
        wizard.enable_split_payment()
        with pytest.raises(StepGuardError):
            wizard.go_to(StepId.REVIEW)


class TestPaymentStep:
    """Tests for payment pre-fill and reset."""

    def test_prefills_amount_paid(self, wizard):
        session = wizard.begin()
        wizard.next_step()
        wizard.next_step()
        assert session.amount_paid == TOTAL
        assert session.priced_total == TOTAL

    def test_total_change_resets_payment(self, wizard):
        session = wizard.begin()
        walk_to_review(wizard)
        wizard.go_to(StepId.DISCOUNT)
        wizard.set_discount(DiscountSpec.percentage(10))

        wizard.next_step()

        assert session.payment_method is None
        assert session.amount_paid == Decimal("4230.00")
        assert session.priced_total == Decimal("4230.00")

    def test_unchanged_total_keeps_payment(self, wizard):
        session = wizard.begin()
        walk_to_review(wizard)
        wizard.go_to(StepId.PAYMENT_METHOD)
        assert session.payment_method == PaymentMethod.CASH

    def test_split_reset_on_total_change(self, wizard):
        session = wizard.begin()
        wizard.next_step()
        wizard.next_step()
        wizard.enable_split_payment()
        wizard.add_tender(PaymentMethod.CASH, "1000")
        wizard.previous_step()
        wizard.set_discount(DiscountSpec.fixed(100))
        wizard.next_step()
        assert not session.split_mode
        assert session.tenders == []

    def test_set_amount_paid_sanitizes(self, wizard):
        wizard.begin()
        assert wizard.set_amount_paid("abc") == Decimal("0")
        assert wizard.set_amount_paid("5000") == Decimal("5000")

    def test_add_tender_rejects_non_positive(self, wizard):
        wizard.begin()
        with pytest.raises(StepGuardError):
            wizard.add_tender(PaymentMethod.CASH, 0)

    def test_remove_tender(self, wizard):
        session = wizard.begin()
        wizard.enable_split_payment()
        wizard.add_tender(PaymentMethod.CASH, "10")
        wizard.add_tender(PaymentMethod.CARD_TERMINAL, "20")
        removed = wizard.remove_tender(0)
        assert removed.method == PaymentMethod.CASH
        assert [t.method for t in session.tenders] == [PaymentMethod.CARD_TERMINAL]
        with pytest.raises(StepGuardError):
            wizard.remove_tender(5)

    def test_disable_split_drops_tenders(self, wizard):
        session = wizard.begin()
        wizard.enable_split_payment()
        wizard.add_tender(PaymentMethod.CASH, "10")
        wizard.disable_split_payment()
        assert not session.split_mode
        assert session.tenders == []


class TestCustomerAndNotes:
    """Tests for customer details and notes."""

    def test_set_customer_fields_merge(self, wizard):
        wizard.begin()
        wizard.set_customer_info(name="Bola")
        customer = wizard.set_customer_info(phone=" 0803 ")
        assert customer.name == "Bola"
        assert customer.phone == "0803"

    def test_notes_blank_to_none(self, wizard):
        session = wizard.begin()
        wizard.set_notes("  ")
        assert session.notes is None
        wizard.set_notes(" fragile ")
        assert session.notes == "fragile"


class TestCoupons:
    """Tests for optimistic coupon application."""

    async def test_apply_coupon(self, wizard, coupons):
        session = wizard.begin()
        coupons.validate.return_value = CouponValidation(
            code="SAVE10",
            discount=DiscountSpec.percentage(10),
            discount_amount=Decimal("470.00"),
        )

        validation = await wizard.apply_coupon(" SAVE10 ")

        coupons.validate.assert_awaited_once_with("SAVE10", TOTAL)
        assert validation.discount_amount == Decimal("470.00")
        assert session.discount.coupon_code == "SAVE10"
        assert wizard.totals().total == Decimal("4230.00")

    async def test_preview_applied_while_validating(self, wizard, coupons):
        session = wizard.begin()
        seen = []

        async def validate(code, total):
            seen.append(session.discount)
            return CouponValidation(code, DiscountSpec.fixed(200), Decimal("200"))

        coupons.validate.side_effect = validate
        await wizard.apply_coupon("FLAT", preview=DiscountSpec.fixed(150))

        assert seen[0].value == 150
        assert seen[0].coupon_code == "FLAT"
        assert session.discount.value == Decimal("200")

    async def test_rejected_coupon_rolls_back(self, wizard, coupons):
        session = wizard.begin()
        wizard.set_discount(DiscountSpec.fixed(50))
        coupons.validate.side_effect = CouponNotFoundError("NOPE")

        with pytest.raises(CouponNotFoundError):
            await wizard.apply_coupon("NOPE", preview=DiscountSpec.percentage(50))

        assert session.discount == DiscountSpec.fixed(50)

    async def test_no_coupon_service(self, filled_cart, submitter):
        wizard = CheckoutWizard(cart=filled_cart, submitter=submitter)
        session = wizard.begin()
        with pytest.raises(CouponServiceUnavailableError):
            await wizard.apply_coupon("SAVE10")
        assert session.discount == DiscountSpec.none()

    def test_clear_discount(self, wizard):
        wizard.begin()
        wizard.set_discount(DiscountSpec.percentage(20))
        assert wizard.clear_discount().total == TOTAL


class TestConfirm:
    """Tests for confirming a checkout."""

    async def test_completed_online(self, wizard, filled_cart, endpoint):
        session = wizard.begin()
        walk_to_review(wizard)

        result = await wizard.confirm()

        assert result.completed
        assert result.sale.sync_state == SyncState.SYNCED
        assert result.sale.total == TOTAL
        assert filled_cart.is_empty
        assert session.consumed
        assert len(endpoint.records) == 1

    async def test_confirm_twice(self, wizard):
        wizard.begin()
        walk_to_review(wizard)
        await wizard.confirm()
        with pytest.raises(SessionConsumedError):
            await wizard.confirm()

    async def test_completed_offline(self, wizard, connectivity, queue):
        wizard.begin()
        walk_to_review(wizard)
        connectivity.set_online(False)

        result = await wizard.confirm()

        assert result.status == ConfirmStatus.COMPLETED
        assert result.sale.sync_state == SyncState.PENDING
        assert [e.local_id for e in await queue.entries()] == [result.sale.local_id]

    async def test_rejected(self, wizard, filled_cart, endpoint):
        wizard.begin()
        walk_to_review(wizard)
        endpoint.failures.append(SaleRejectedError("stock changed", status_code=409))

        result = await wizard.confirm()

        assert result.status == ConfirmStatus.REJECTED
        assert isinstance(result.error, SaleRejectedError)
        assert wizard.is_active
        assert len(filled_cart) == 2

    async def test_not_on_review(self, wizard):
        wizard.begin()
        result = await wizard.confirm()
        assert result.status == ConfirmStatus.INVALID
        assert isinstance(result.error, StepGuardError)

    async def test_cash_underpaid(self, wizard, endpoint):
        wizard.begin()
        walk_to_review(wizard)
        wizard.set_amount_paid("4000")

        result = await wizard.confirm()

        assert result.status == ConfirmStatus.INVALID
        assert isinstance(result.error, InsufficientFundsError)
        assert result.error.details["shortfall"] == "700.00"
        assert endpoint.calls == []

    async def test_cash_change(self, wizard):
        wizard.begin()
        walk_to_review(wizard)
        wizard.set_amount_paid("5000")
        result = await wizard.confirm()
        assert result.sale.change_due == Decimal("300.00")
        assert result.sale.amount_paid == Decimal("5000.00")

    async def test_card_short_amount_accepted(self, wizard):
        wizard.begin()
        walk_to_review(wizard, method=PaymentMethod.CARD_TERMINAL)
        wizard.set_amount_paid("4000")
        result = await wizard.confirm()
        assert result.completed
        assert result.sale.change_due == Decimal("0")

    @pytest.mark.parametrize("method", [PaymentMethod.CARD_TERMINAL, PaymentMethod.BANK_TRANSFER])
    async def test_zero_non_cash_tender_invalid(self, wizard, endpoint, queue, method):
        wizard.begin()
        walk_to_review(wizard, method=method)
        wizard.set_amount_paid(0)

        result = await wizard.confirm()

        assert result.status == ConfirmStatus.INVALID
        assert isinstance(result.error, InsufficientFundsError)
        assert result.error.details["shortfall"] == "4700.00"
        assert result.sale is None
        assert endpoint.calls == []
        assert await queue.entries() == []
        assert wizard.is_active

    async def test_split_shortfall(self, wizard):
        wizard.begin()
        wizard.next_step()
        wizard.next_step()
        wizard.enable_split_payment()
        wizard.add_tender(PaymentMethod.CASH, "1000")
        wizard.next_step()
        wizard.next_step()

        result = await wizard.confirm()

        assert result.status == ConfirmStatus.INVALID
        assert isinstance(result.error, InsufficientFundsError)

    async def test_split_completed(self, wizard):
        wizard.begin()
        wizard.next_step()
        wizard.next_step()
        wizard.enable_split_payment()
        wizard.add_tender(PaymentMethod.CASH, "2000")
        wizard.add_tender(PaymentMethod.BANK_TRANSFER, "3000")
        wizard.next_step()
        wizard.next_step()

        result = await wizard.confirm()

        assert result.completed
        assert result.sale.split_payment
        assert result.sale.amount_paid == Decimal("5000.00")
        assert result.sale.change_due == Decimal("0")

    async def test_cart_changed_after_payment(self, wizard, filled_cart):
        wizard.begin()
        walk_to_review(wizard)
        filled_cart.remove(2)

        result = await wizard.confirm()

        assert result.status == ConfirmStatus.INVALID
        assert wizard.is_active

    async def test_cart_emptied_before_confirm(self, wizard, filled_cart):
        wizard.begin()
        walk_to_review(wizard)
        filled_cart.clear()
        result = await wizard.confirm()
        assert isinstance(result.error, EmptyCartError)
