"""
Checkout wizard.

Five-step state machine over a checkout session:

    order-summary -> discount -> payment-method -> customer-info -> review

Advancing is gated by a pure predicate per step (``can_advance``). Steps
already visited can be revisited in any order; unvisited steps can only be
reached by advancing.
"""

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from src.config import get_logger
from src.core.entities.checkout import STEP_ORDER, CheckoutSession, StepId
from src.core.entities.customer import CustomerInfo
from src.core.entities.discount import DiscountSpec
from src.core.entities.payment import PaymentMethod, PaymentTender
from src.core.entities.sale import Sale
from src.core.exceptions import (
    CheckoutError,
    CouponServiceUnavailableError,
    EmptyCartError,
    InsufficientFundsError,
    PaymentMethodRequiredError,
    POSError,
    SaleRejectedError,
    SessionConsumedError,
    StepGuardError,
    StepNotReachableError,
)
from src.core.interfaces.coupon_service import CouponValidation, ICouponService
from src.core.services.calculator import Totals, to_amount
from src.core.services.cart_store import CartStore
from src.core.services.optimistic import OptimisticUpdate
from src.core.services.sale_submitter import SaleSubmitter
from src.core.services.split_payment import SplitPaymentReconciler

logger = get_logger(__name__)


def _payment_ready(session: CheckoutSession) -> bool:
    if session.split_mode:
        return bool(session.tenders) and session.tendered_total > 0
    return session.payment_method is not None


ADVANCE_GUARDS: dict[StepId, Callable[[CheckoutSession], bool]] = {
    StepId.ORDER_SUMMARY: lambda s: True,
    StepId.DISCOUNT: lambda s: True,
    StepId.PAYMENT_METHOD: _payment_ready,
    StepId.CUSTOMER_INFO: lambda s: True,
    StepId.REVIEW: lambda s: not s.confirmed,
}


def can_advance(step: StepId, session: CheckoutSession) -> bool:
    """Whether the data collected so far allows leaving ``step``."""
    return ADVANCE_GUARDS[step](session)


class ConfirmStatus(str, Enum):
    COMPLETED = "completed"
    REJECTED = "rejected"
    INVALID = "invalid"


@dataclass(frozen=True)
class ConfirmResult:
    """Outcome of confirming a checkout."""

    status: ConfirmStatus
    sale: Sale | None = None
    error: POSError | None = None

    @property
    def completed(self) -> bool:
        return self.status == ConfirmStatus.COMPLETED


class CheckoutWizard:
    """
    Drives one checkout at a time over a shared cart.

    Required collaborators:
    - CartStore: the cart being checked out
    - SaleSubmitter: builds and sends the sale
    - ICouponService: optional, needed only for ``apply_coupon``
    """

    def __init__(
        self,
        cart: CartStore,
        submitter: SaleSubmitter,
        coupon_service: ICouponService | None = None,
        reconciler: SplitPaymentReconciler | None = None,
    ):
        self._cart = cart
        self._submitter = submitter
        self._coupons = coupon_service
        self._reconciler = reconciler or SplitPaymentReconciler()
        self._session: CheckoutSession | None = None
        self._confirming = False

    # === State ===

    @property
    def session(self) -> CheckoutSession | None:
        return self._session

    @property
    def is_active(self) -> bool:
        return self._session is not None and not self._session.consumed

    @property
    def current_step(self) -> StepId:
        return self._require_session().current_step

    def totals(self) -> Totals:
        return self._cart.totals(self._require_session().discount)

    def can_advance(self) -> bool:
        session = self._require_session()
        return can_advance(session.current_step, session)

    def _require_session(self) -> CheckoutSession:
        session = self._session
        if session is None:
            raise CheckoutError("No checkout in progress", code="NO_ACTIVE_CHECKOUT")
        if session.consumed:
            raise SessionConsumedError(session.session_id)
        return session

    # === Lifecycle ===

    def begin(self) -> CheckoutSession:
        """
        Start a new checkout over the current cart.

        Raises:
            EmptyCartError: the cart has no line items
        """
        if self._cart.is_empty:
            raise EmptyCartError()
        if self.is_active:
            logger.info("checkout_replaced", session_id=self._session.session_id)
        self._session = CheckoutSession()
        logger.info(
            "checkout_started",
            session_id=self._session.session_id,
            lines=len(self._cart),
        )
        return self._session

    def cancel(self) -> None:
        """Discard the session. The cart is left as it is."""
        session = self._require_session()
        session.consumed = True
        self._session = None
        logger.info("checkout_cancelled", session_id=session.session_id)

    # === Navigation ===

    def next_step(self) -> StepId:
        session = self._require_session()
        step = session.current_step
        if step == STEP_ORDER[-1]:
            raise StepGuardError(step.value, "already on the final step")
        self._check_guard(session, step)
        return self._enter(session, STEP_ORDER[step.position + 1])

    def previous_step(self) -> StepId:
        session = self._require_session()
        step = session.current_step
        if step.position == 0:
            return step
        return self._enter(session, STEP_ORDER[step.position - 1])

    def go_to(self, target: StepId) -> StepId:
        """
        Jump to a visited step.

        Forward jumps must still pass the guard of every step in between.

        Raises:
            StepNotReachableError: target has not been visited
        """
        session = self._require_session()
        current = session.current_step
        if target not in session.visited_steps:
            raise StepNotReachableError(target.value, current.value)
        for step in STEP_ORDER[current.position:target.position]:
            self._check_guard(session, step)
        return self._enter(session, target)

    def _check_guard(self, session: CheckoutSession, step: StepId) -> None:
        if can_advance(step, session):
            return
        if step == StepId.PAYMENT_METHOD and not session.split_mode:
            raise PaymentMethodRequiredError()
        if step == StepId.PAYMENT_METHOD:
            raise StepGuardError(step.value, "add at least one tender")
        raise StepGuardError(step.value, "step is incomplete")

    def _enter(self, session: CheckoutSession, step: StepId) -> StepId:
        if step == StepId.PAYMENT_METHOD:
            self._prepare_payment(session)
        session.current_step = step
        session.visited_steps.add(step)
        logger.debug("checkout_step_entered", session_id=session.session_id, step=step.value)
        return step

    def _prepare_payment(self, session: CheckoutSession) -> None:
        """Pre-fill the amount paid, or reset payment if the total has moved."""
        total = self._cart.totals(session.discount).total
        if session.priced_total is not None and session.priced_total != total:
            logger.info(
                "checkout_payment_reset",
                session_id=session.session_id,
                previous_total=str(session.priced_total),
                total=str(total),
            )
            session.reset_payment()
            session.split_mode = False
        if session.priced_total is None:
            session.amount_paid = total
            session.priced_total = total

    # === Discount ===

    def set_discount(self, discount: DiscountSpec) -> Totals:
        session = self._require_session()
        session.discount = discount
        return self.totals()

    def clear_discount(self) -> Totals:
        return self.set_discount(DiscountSpec.none())

    async def apply_coupon(self, code: str, preview: DiscountSpec | None = None) -> CouponValidation:
        """
        Apply a coupon code.

        The discount is applied immediately (``preview`` if the caller
        already knows it) and rolled back if the coupon service refuses
        the code or cannot be reached.

        Raises:
            CouponNotFoundError, CouponExpiredError, CouponServiceUnavailableError
        """
        session = self._require_session()
        code = code.strip()
        current = session.discount
        optimistic = preview or DiscountSpec(kind=current.kind, value=current.value)
        optimistic = optimistic.model_copy(update={"coupon_code": code})

        def restore(spec: DiscountSpec) -> None:
            session.discount = spec

        def change() -> None:
            session.discount = optimistic

        update = OptimisticUpdate(lambda: session.discount, restore, change).apply()

        try:
            if self._coupons is None:
                raise CouponServiceUnavailableError("no coupon service configured")
            subtotal = self._cart.totals(current).subtotal
            validation = await self._coupons.validate(code, subtotal)
        except Exception as e:
            update.rollback()
            logger.info("coupon_rejected", session_id=session.session_id, code=code, error=str(e))
            raise

        session.discount = validation.discount.model_copy(update={"coupon_code": code})
        update.commit()
        logger.info(
            "coupon_applied",
            session_id=session.session_id,
            code=code,
            discount_amount=str(validation.discount_amount),
        )
        return validation

    # === Payment ===

    def select_payment_method(self, method: PaymentMethod) -> None:
        self._require_session().payment_method = method

    def set_amount_paid(self, amount: Any) -> Decimal:
        session = self._require_session()
        session.amount_paid = to_amount(amount)
        return session.amount_paid

    def enable_split_payment(self) -> None:
        session = self._require_session()
        session.split_mode = True
        session.payment_method = None

    def disable_split_payment(self) -> None:
        session = self._require_session()
        session.split_mode = False
        session.tenders = []

    def add_tender(self, method: PaymentMethod, amount: Any) -> PaymentTender:
        """Add a tender to a split payment. Non-positive amounts are refused."""
        session = self._require_session()
        value = to_amount(amount)
        if value <= 0:
            raise StepGuardError(StepId.PAYMENT_METHOD.value, "tender amount must be positive")
        tender = PaymentTender(method=method, amount=value)
        session.tenders.append(tender)
        return tender

    def remove_tender(self, index: int) -> PaymentTender:
        session = self._require_session()
        try:
            return session.tenders.pop(index)
        except IndexError:
            raise StepGuardError(
                StepId.PAYMENT_METHOD.value, f"no tender at position {index}"
            ) from None

    # === Customer ===

    def set_customer_info(self, customer: CustomerInfo | None = None, **fields: Any) -> CustomerInfo:
        session = self._require_session()
        if customer is None:
            merged = session.customer.model_dump()
            merged.update(fields)
            customer = CustomerInfo(**merged)
        session.customer = customer
        return customer

    def set_notes(self, notes: str | None) -> None:
        session = self._require_session()
        session.notes = (notes or "").strip() or None

    # === Confirmation ===

    async def confirm(self) -> ConfirmResult:
        """
        Validate and submit the sale.

        Validation problems and backend rejections come back as a result,
        not an exception. A completed checkout consumes the session and
        empties the cart.

        Raises:
            SessionConsumedError: the session was already completed or cancelled
        """
        session = self._require_session()
        if self._confirming:
            raise CheckoutError("Confirmation already in progress", code="CONFIRM_IN_PROGRESS")

        invalid = self._validate(session)
        if invalid is not None:
            logger.info("checkout_invalid", session_id=session.session_id, error=invalid.code)
            return ConfirmResult(status=ConfirmStatus.INVALID, error=invalid)

        totals = self.totals()
        self._confirming = True
        try:
            sale = await self._submitter.submit(session, self._cart.items, totals)
        except SaleRejectedError as e:
            logger.warning("checkout_rejected", session_id=session.session_id, reason=e.reason)
            return ConfirmResult(status=ConfirmStatus.REJECTED, error=e)
        finally:
            self._confirming = False

        session.confirmed = True
        session.consumed = True
        self._cart.clear()
        logger.info(
            "checkout_completed",
            session_id=session.session_id,
            local_id=sale.local_id,
            sync_state=sale.sync_state.value,
        )
        return ConfirmResult(status=ConfirmStatus.COMPLETED, sale=sale)

    def _validate(self, session: CheckoutSession) -> CheckoutError | None:
        if session.current_step != StepId.REVIEW:
            return StepGuardError(session.current_step.value, "confirm is only available on review")
        if self._cart.is_empty:
            return EmptyCartError()

        total = self.totals().total
        if session.split_mode:
            reconciliation = self._reconciler.validate(session.tenders, total)
        else:
            if session.priced_total is not None and session.priced_total != total:
                return StepGuardError(
                    StepId.PAYMENT_METHOD.value, "cart total changed since payment was entered"
                )
            try:
                reconciliation = self._reconciler.validate_single(
                    session.payment_method, session.amount_paid, total
                )
            except PaymentMethodRequiredError as e:
                return e

        if not reconciliation.ok:
            return InsufficientFundsError(reconciliation.tendered, reconciliation.amount_due)
        return None
