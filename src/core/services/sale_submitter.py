"""
Sale submission.

``SaleDispatcher`` sends one sale to the backend and classifies the outcome;
it is shared by the submitter (first attempt at checkout) and the offline
queue (replays), so both paths use the same idempotency key and the same
failure policy.

``SaleSubmitter`` builds the immutable Sale snapshot from a checkout and
routes connectivity failures into the offline queue.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from src.config import get_logger
from src.core.entities.cart import LineItem
from src.core.entities.checkout import CheckoutSession
from src.core.entities.customer import StaffIdentity
from src.core.entities.payment import PaymentMethod, PaymentTender
from src.core.entities.sale import Sale, new_local_id
from src.core.exceptions import (
    InsufficientFundsError,
    PaymentMethodRequiredError,
    SaleRejectedError,
)
from src.core.interfaces.connectivity import IConnectivitySignal
from src.core.interfaces.sale_endpoint import ISaleEndpoint, SaleAck
from src.core.services.calculator import ZERO, Totals, compute_change, quantize, to_amount
from src.core.services.failure_classifier import (
    DefaultFailureClassifier,
    FailureClassifier,
    FailureKind,
)

if TYPE_CHECKING:
    from src.core.services.offline_queue import OfflineQueue

logger = get_logger(__name__)


class DispatchOutcome(str, Enum):
    ACCEPTED = "accepted"
    CONNECTIVITY = "connectivity"
    REJECTED = "rejected"


@dataclass(frozen=True)
class DispatchResult:
    """What happened to one submission attempt."""

    outcome: DispatchOutcome
    sale: Sale
    ack: SaleAck | None = None
    error: Exception | None = None

    @property
    def accepted(self) -> bool:
        return self.outcome == DispatchOutcome.ACCEPTED


class SaleDispatcher:
    """Submits sales to the endpoint, keyed by their local id."""

    def __init__(
        self,
        endpoint: ISaleEndpoint,
        classifier: FailureClassifier | None = None,
    ):
        self._endpoint = endpoint
        self._classifier = classifier or DefaultFailureClassifier()

    @property
    def endpoint(self) -> ISaleEndpoint:
        return self._endpoint

    @property
    def classifier(self) -> FailureClassifier:
        return self._classifier

    async def dispatch(self, sale: Sale) -> DispatchResult:
        """
        Send a sale once.

        Never raises for endpoint failures; the result carries the
        classified outcome and the original error.
        """
        try:
            ack = await self._endpoint.submit(sale.to_payload(), idempotency_key=sale.local_id)
        except Exception as e:
            kind = self._classifier.classify(e)
            outcome = (
                DispatchOutcome.REJECTED
                if kind == FailureKind.REJECTION
                else DispatchOutcome.CONNECTIVITY
            )
            logger.warning(
                "sale_dispatch_failed",
                local_id=sale.local_id,
                outcome=outcome.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return DispatchResult(outcome=outcome, sale=sale, error=e)

        logger.info(
            "sale_dispatched",
            local_id=sale.local_id,
            server_id=ack.sale_id,
            duplicate=ack.duplicate,
        )
        return DispatchResult(
            outcome=DispatchOutcome.ACCEPTED,
            sale=sale.mark_synced(ack.sale_id),
            ack=ack,
        )


class SaleSubmitter:
    """
    Turns a validated checkout into a Sale and gets it to the backend.

    Accepted sales come back SYNCED. When the backend cannot be reached the
    sale is written to the offline queue first and then returned PENDING.
    Rejections raise ``SaleRejectedError`` and nothing is queued.
    """

    def __init__(
        self,
        dispatcher: SaleDispatcher,
        queue: "OfflineQueue",
        staff: StaffIdentity,
        connectivity: IConnectivitySignal | None = None,
    ):
        self._dispatcher = dispatcher
        self._queue = queue
        self._staff = staff
        self._connectivity = connectivity

    @property
    def staff(self) -> StaffIdentity:
        return self._staff

    @property
    def queue(self) -> "OfflineQueue":
        return self._queue

    def build_sale(
        self,
        session: CheckoutSession,
        items: Sequence[LineItem],
        totals: Totals,
    ) -> Sale:
        """
        Freeze the checkout into a Sale with a fresh local id.

        A single-tender checkout always yields exactly one tender.

        Raises:
            PaymentMethodRequiredError: single mode without a method
            InsufficientFundsError: single mode with nothing tendered
        """
        if session.split_mode:
            tenders = tuple(session.tenders)
            amount_paid = quantize(sum((t.amount for t in tenders), ZERO))
            change_due = ZERO
            single_method = None
        else:
            single_method = session.payment_method
            paid = session.amount_paid if session.amount_paid is not None else totals.total
            amount_paid = quantize(to_amount(paid))
            if single_method is None:
                raise PaymentMethodRequiredError()
            if amount_paid <= ZERO:
                raise InsufficientFundsError(amount_paid, totals.total)
            tenders = (PaymentTender(method=single_method, amount=amount_paid),)
            change_due = (
                compute_change(amount_paid, totals.total)
                if single_method == PaymentMethod.CASH
                else Decimal("0")
            )

        return Sale(
            local_id=new_local_id(),
            items=tuple(item.model_copy() for item in items if item.quantity > 0),
            subtotal=totals.subtotal,
            discount=totals.discount_amount,
            total=totals.total,
            tenders=tenders,
            amount_paid=amount_paid,
            change_due=change_due,
            split_payment=session.split_mode,
            single_method=single_method,
            customer=session.customer.model_copy(),
            staff_id=self._staff.id,
            staff_name=self._staff.name,
            notes=session.notes,
        )

    async def submit(
        self,
        session: CheckoutSession,
        items: Sequence[LineItem],
        totals: Totals,
    ) -> Sale:
        """
        Build and submit a sale.

        Returns:
            The SYNCED sale, or the PENDING sale once it is durably queued.

        Raises:
            SaleRejectedError: the backend refused the sale
        """
        sale = self.build_sale(session, items, totals)
        logger.info(
            "sale_submit_started",
            local_id=sale.local_id,
            total=str(sale.total),
            payment_method=sale.payment_method,
        )

        if self._connectivity is not None and not self._connectivity.is_online:
            await self._queue.enqueue(sale)
            logger.info("sale_queued_offline", local_id=sale.local_id, reason="offline")
            return sale

        result = await self._dispatcher.dispatch(sale)

        if result.outcome == DispatchOutcome.ACCEPTED:
            logger.info(
                "sale_submitted",
                local_id=sale.local_id,
                server_id=result.sale.server_id,
            )
            return result.sale

        if result.outcome == DispatchOutcome.REJECTED:
            error = result.error
            if not isinstance(error, SaleRejectedError):
                error = SaleRejectedError(str(error))
            logger.warning("sale_rejected", local_id=sale.local_id, reason=error.reason)
            raise error

        await self._queue.enqueue(sale)
        logger.info(
            "sale_queued_offline",
            local_id=sale.local_id,
            reason=str(result.error),
        )
        return sale
