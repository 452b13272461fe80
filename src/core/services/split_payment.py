"""
Split-payment reconciler.

Checks that the tenders offered for a sale cover the amount due. Overpaying
a split is accepted but never turned into change; only a single cash tender
produces change, and that change is for display only.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from src.core.entities.payment import PaymentMethod, PaymentTender
from src.core.exceptions import InsufficientFundsError, PaymentMethodRequiredError
from src.core.services.calculator import ZERO, compute_change, quantize, to_amount


class ReconciliationStatus(str, Enum):
    OK = "ok"
    INSUFFICIENT_FUNDS = "insufficient_funds"


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of checking tenders against an amount due."""

    status: ReconciliationStatus
    tendered: Decimal
    amount_due: Decimal
    shortfall: Decimal = ZERO
    overage: Decimal = ZERO
    change: Decimal = ZERO

    @property
    def ok(self) -> bool:
        return self.status == ReconciliationStatus.OK

    def raise_for_status(self) -> None:
        if not self.ok:
            raise InsufficientFundsError(self.tendered, self.amount_due)


class SplitPaymentReconciler:
    """Validates tenders against the amount due."""

    def validate(self, tenders: Sequence[PaymentTender], amount_due: Any) -> Reconciliation:
        """
        Split tenders are OK iff their sum is at least the amount due.

        An empty list only covers a zero amount due.
        """
        due = quantize(to_amount(amount_due))
        tendered = quantize(sum((to_amount(t.amount) for t in tenders), ZERO))

        if tendered < due:
            return Reconciliation(
                status=ReconciliationStatus.INSUFFICIENT_FUNDS,
                tendered=tendered,
                amount_due=due,
                shortfall=due - tendered,
            )
        return Reconciliation(
            status=ReconciliationStatus.OK,
            tendered=tendered,
            amount_due=due,
            overage=tendered - due,
        )

    def validate_single(
        self,
        method: PaymentMethod | None,
        amount_paid: Any,
        amount_due: Any,
    ) -> Reconciliation:
        """
        Validate a single-tender payment.

        The tender must be above zero. Cash must also cover the amount due
        and yields change; other instruments are recorded at whatever amount
        was entered.

        Raises:
            PaymentMethodRequiredError: no method selected
        """
        if method is None:
            raise PaymentMethodRequiredError()

        due = quantize(to_amount(amount_due))
        paid = quantize(to_amount(amount_paid))

        if paid <= ZERO:
            return Reconciliation(
                status=ReconciliationStatus.INSUFFICIENT_FUNDS,
                tendered=paid,
                amount_due=due,
                shortfall=due,
            )

        if method == PaymentMethod.CASH:
            if paid < due:
                return Reconciliation(
                    status=ReconciliationStatus.INSUFFICIENT_FUNDS,
                    tendered=paid,
                    amount_due=due,
                    shortfall=due - paid,
                )
            return Reconciliation(
                status=ReconciliationStatus.OK,
                tendered=paid,
                amount_due=due,
                overage=paid - due,
                change=self.compute_change(paid, due),
            )

        return Reconciliation(
            status=ReconciliationStatus.OK,
            tendered=paid,
            amount_due=due,
            overage=max(paid - due, ZERO),
        )

    @staticmethod
    def compute_change(amount_paid: Any, amount_due: Any) -> Decimal:
        return compute_change(amount_paid, amount_due)
