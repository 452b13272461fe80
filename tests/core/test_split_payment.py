"""Tests for SplitPaymentReconciler."""

from decimal import Decimal

import pytest

from src.core.entities import PaymentMethod, PaymentTender
from src.core.exceptions import InsufficientFundsError, PaymentMethodRequiredError
from src.core.services import ReconciliationStatus, SplitPaymentReconciler


def tender(method: PaymentMethod, amount: str) -> PaymentTender:
    return PaymentTender(method=method, amount=Decimal(amount))


@pytest.fixture
def reconciler() -> SplitPaymentReconciler:
    return SplitPaymentReconciler()


class TestValidateSplit:
    """Tests for multi-tender validation."""

    def test_exact_cover(self, reconciler):
        result = reconciler.validate(
            [tender(PaymentMethod.CASH, "400"), tender(PaymentMethod.CARD_TERMINAL, "600")],
            Decimal("1000"),
        )
        assert result.ok
        assert result.tendered == Decimal("1000.00")
        assert result.overage == Decimal("0.00")

    def test_shortfall(self, reconciler):
        result = reconciler.validate([tender(PaymentMethod.CASH, "400")], Decimal("1000"))
        assert result.status == ReconciliationStatus.INSUFFICIENT_FUNDS
        assert result.shortfall == Decimal("600.00")
        with pytest.raises(InsufficientFundsError):
            result.raise_for_status()

    def test_overage_is_not_change(self, reconciler):
        result = reconciler.validate(
            [tender(PaymentMethod.CASH, "700"), tender(PaymentMethod.BANK_TRANSFER, "500")],
            Decimal("1000"),
        )
        assert result.ok
        assert result.overage == Decimal("200.00")
        assert result.change == Decimal("0")

    def test_empty_tenders_against_positive_due(self, reconciler):
        assert not reconciler.validate([], Decimal("1")).ok

    def test_empty_tenders_against_zero_due(self, reconciler):
        assert reconciler.validate([], Decimal("0")).ok


class TestCheckoutAgainstEighteenHundred:
    """Payments against a 1800 total (two units at 1000, 10% off)."""

    @pytest.mark.parametrize(
        "tenders, ok, tendered, shortfall",
        [
            ([("cash", "1000"), ("bank_transfer", "500")], False, "1500.00", "300.00"),
            ([("cash", "1000"), ("bank_transfer", "800")], True, "1800.00", "0"),
        ],
        ids=["cash_and_transfer_short", "cash_and_transfer_exact"],
    )
    def test_split(self, reconciler, tenders, ok, tendered, shortfall):
        result = reconciler.validate(
            [tender(PaymentMethod(method), amount) for method, amount in tenders],
            Decimal("1800"),
        )
        assert result.ok is ok
        assert result.tendered == Decimal(tendered)
        assert result.shortfall == Decimal(shortfall)

    def test_split_short_raises(self, reconciler):
        result = reconciler.validate(
            [tender(PaymentMethod.CASH, "1000"), tender(PaymentMethod.BANK_TRANSFER, "500")],
            Decimal("1800"),
        )
        assert result.status == ReconciliationStatus.INSUFFICIENT_FUNDS
        with pytest.raises(InsufficientFundsError):
            result.raise_for_status()

    def test_single_cash_with_change(self, reconciler):
        result = reconciler.validate_single(PaymentMethod.CASH, Decimal("2000"), Decimal("1800"))
        assert result.ok
        assert result.tendered == Decimal("2000.00")
        assert result.change == Decimal("200.00")


class TestValidateSingle:
    """Tests for single-tender validation."""

    def test_cash_with_change(self, reconciler):
        result = reconciler.validate_single(PaymentMethod.CASH, Decimal("1000"), Decimal("750"))
        assert result.ok
        assert result.change == Decimal("250.00")

    def test_cash_underpaid(self, reconciler):
        result = reconciler.validate_single(PaymentMethod.CASH, Decimal("500"), Decimal("750"))
        assert result.status == ReconciliationStatus.INSUFFICIENT_FUNDS
        assert result.shortfall == Decimal("250.00")

    def test_non_cash_recorded_as_entered(self, reconciler):
        result = reconciler.validate_single(
            PaymentMethod.CARD_TERMINAL, Decimal("500"), Decimal("750")
        )
        assert result.ok
        assert result.tendered == Decimal("500.00")
        assert result.change == Decimal("0")

    @pytest.mark.parametrize(
        "method",
        [PaymentMethod.CASH, PaymentMethod.CARD_TERMINAL, PaymentMethod.MOBILE_MONEY],
    )
    @pytest.mark.parametrize("paid", [Decimal("0"), Decimal("-5"), "abc"])
    def test_zero_tender_is_insufficient(self, reconciler, method, paid):
        result = reconciler.validate_single(method, paid, Decimal("750"))
        assert result.status == ReconciliationStatus.INSUFFICIENT_FUNDS
        assert result.tendered == Decimal("0.00")
        assert result.shortfall == Decimal("750.00")

    def test_zero_tender_against_zero_due(self, reconciler):
        result = reconciler.validate_single(PaymentMethod.CASH, Decimal("0"), Decimal("0"))
        assert not result.ok

    def test_method_required(self, reconciler):
        with pytest.raises(PaymentMethodRequiredError):
            reconciler.validate_single(None, Decimal("10"), Decimal("10"))

    def test_compute_change(self, reconciler):
        assert reconciler.compute_change(Decimal("20"), Decimal("12.5")) == Decimal("7.50")
