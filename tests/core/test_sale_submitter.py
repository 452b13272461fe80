"""Tests for SaleDispatcher and SaleSubmitter."""

from decimal import Decimal

import pytest

from src.core.entities import (
    CheckoutSession,
    CustomerInfo,
    LineItem,
    PaymentMethod,
    PaymentTender,
    SyncState,
)
from src.core.exceptions import (
    InsufficientFundsError,
    PaymentMethodRequiredError,
    SaleEndpointServerError,
    SaleRejectedError,
)
from src.core.services import DispatchOutcome
from src.core.services.calculator import Totals


@pytest.fixture
def items(products) -> list[LineItem]:
    return [LineItem.from_product(products["soap"], quantity=3)]


@pytest.fixture
def totals() -> Totals:
    return Totals(subtotal=Decimal("750.00"), discount_amount=Decimal("0.00"), total=Decimal("750.00"))


@pytest.fixture
def cash_session() -> CheckoutSession:
    return CheckoutSession(
        payment_method=PaymentMethod.CASH,
        amount_paid=Decimal("1000"),
        customer=CustomerInfo(name="Bola"),
        notes="deliver later",
    )


class TestSaleDispatcher:
    """Tests for a single dispatch attempt."""

    async def test_accepted(self, dispatcher, endpoint, make_sale):
        sale = make_sale()
        result = await dispatcher.dispatch(sale)
        assert result.accepted
        assert result.sale.sync_state == SyncState.SYNCED
        assert result.sale.server_id == "srv-1"
        assert endpoint.submitted_keys == [sale.local_id]

    async def test_connectivity(self, dispatcher, endpoint, make_sale):
        endpoint.failures.append(SaleEndpointServerError(502))
        result = await dispatcher.dispatch(make_sale())
        assert result.outcome == DispatchOutcome.CONNECTIVITY
        assert isinstance(result.error, SaleEndpointServerError)

    async def test_rejected(self, dispatcher, endpoint, make_sale):
        endpoint.failures.append(SaleRejectedError("bad payload", status_code=400))
        result = await dispatcher.dispatch(make_sale())
        assert result.outcome == DispatchOutcome.REJECTED
        assert result.sale.sync_state == SyncState.PENDING

    async def test_same_sale_twice_is_one_record(self, dispatcher, endpoint, make_sale):
        sale = make_sale()
        first = await dispatcher.dispatch(sale)
        second = await dispatcher.dispatch(sale)
        assert first.sale.server_id == second.sale.server_id
        assert second.ack.duplicate
        assert len(endpoint.records) == 1


class TestBuildSale:
    """Tests for freezing a checkout into a Sale."""

    def test_single_cash(self, submitter, cash_session, items, totals, staff):
        sale = submitter.build_sale(cash_session, items, totals)
        assert sale.local_id.startswith("offline_")
        assert sale.amount_paid == Decimal("1000.00")
        assert sale.change_due == Decimal("250.00")
        assert sale.tenders == (PaymentTender(method=PaymentMethod.CASH, amount=Decimal("1000.00")),)
        assert sale.staff_id == staff.id
        assert sale.customer.name == "Bola"
        assert sale.notes == "deliver later"
        assert sale.sync_state == SyncState.PENDING

    def test_single_card_has_no_change(self, submitter, items, totals):
        session = CheckoutSession(payment_method=PaymentMethod.CARD_TERMINAL, amount_paid=Decimal("800"))
        sale = submitter.build_sale(session, items, totals)
        assert sale.change_due == Decimal("0")
        assert sale.payment_method == "pos"

    def test_split(self, submitter, items, totals):
        session = CheckoutSession(
            split_mode=True,
            tenders=[
                PaymentTender(method=PaymentMethod.CASH, amount=Decimal("300")),
                PaymentTender(method=PaymentMethod.BANK_TRANSFER, amount=Decimal("500")),
            ],
        )
        sale = submitter.build_sale(session, items, totals)
        assert sale.split_payment
        assert sale.amount_paid == Decimal("800.00")
        assert sale.change_due == Decimal("0")
        assert len(sale.tenders) == 2

    def test_cash_change_not_subtracted_from_payment(self, submitter, items):
        totals = Totals(subtotal=Decimal("2000"), discount_amount=Decimal("200"), total=Decimal("1800"))
        session = CheckoutSession(payment_method=PaymentMethod.CASH, amount_paid=Decimal("2000"))
        sale = submitter.build_sale(session, items, totals)
        assert sale.change_due == Decimal("200.00")
        assert sale.amount_paid == Decimal("2000.00")
        assert sale.tenders == (PaymentTender(method=PaymentMethod.CASH, amount=Decimal("2000.00")),)
        assert sale.to_payload()["amountPaid"] == 2000.0

    def test_single_always_has_one_tender(self, submitter, items, totals):
        session = CheckoutSession(payment_method=PaymentMethod.MOBILE_MONEY)
        sale = submitter.build_sale(session, items, totals)
        assert sale.tenders == (
            PaymentTender(method=PaymentMethod.MOBILE_MONEY, amount=Decimal("750.00")),
        )

    def test_zero_tender_refused(self, submitter, items, totals):
        session = CheckoutSession(payment_method=PaymentMethod.CARD_TERMINAL, amount_paid=Decimal("0"))
        with pytest.raises(InsufficientFundsError):
            submitter.build_sale(session, items, totals)

    def test_zero_total_has_nothing_to_tender(self, submitter, items):
        zero = Totals(subtotal=Decimal("750"), discount_amount=Decimal("750"), total=Decimal("0.00"))
        session = CheckoutSession(payment_method=PaymentMethod.CASH)
        with pytest.raises(InsufficientFundsError):
            submitter.build_sale(session, items, zero)

    def test_single_without_method_refused(self, submitter, items, totals):
        with pytest.raises(PaymentMethodRequiredError):
            submitter.build_sale(CheckoutSession(amount_paid=Decimal("750")), items, totals)

    def test_zero_quantity_lines_dropped(self, submitter, cash_session, products, totals):
        items = [LineItem.from_product(products["soap"]), LineItem.from_product(products["milk"])]
        sale = submitter.build_sale(cash_session, items, totals)
        assert [i.product_id for i in sale.items] == [1]

    def test_fresh_local_id_each_time(self, submitter, cash_session, items, totals):
        first = submitter.build_sale(cash_session, items, totals)
        second = submitter.build_sale(cash_session, items, totals)
        assert first.local_id != second.local_id


class TestSubmit:
    """Tests for submit routing."""

    async def test_accepted_sale_is_synced(self, submitter, queue, cash_session, items, totals):
        sale = await submitter.submit(cash_session, items, totals)
        assert sale.sync_state == SyncState.SYNCED
        assert sale.server_id == "srv-1"
        assert await queue.entries() == []

    async def test_unreachable_sale_is_queued(self, submitter, queue, endpoint, cash_session,
                                              items, totals):
        endpoint.offline = True
        sale = await submitter.submit(cash_session, items, totals)
        assert sale.sync_state == SyncState.PENDING

        entries = await queue.entries()
        assert [e.local_id for e in entries] == [sale.local_id]

    async def test_server_error_is_queued(self, submitter, queue, endpoint, cash_session,
                                          items, totals):
        endpoint.failures.append(SaleEndpointServerError(503))
        sale = await submitter.submit(cash_session, items, totals)
        assert sale.sync_state == SyncState.PENDING
        assert await queue.pending_count() == 1

    async def test_rejection_raises_and_queues_nothing(self, submitter, queue, endpoint,
                                                       cash_session, items, totals):
        endpoint.failures.append(SaleRejectedError("insufficient stock", status_code=409))
        with pytest.raises(SaleRejectedError, match="insufficient stock"):
            await submitter.submit(cash_session, items, totals)
        assert await queue.entries() == []

    async def test_offline_signal_skips_network(self, submitter, queue, endpoint, connectivity,
                                                cash_session, items, totals):
        connectivity.set_online(False)
        sale = await submitter.submit(cash_session, items, totals)
        assert endpoint.calls == []
        assert (await queue.get(sale.local_id)).sync_state == SyncState.PENDING

    async def test_queue_write_failure_propagates(self, submitter, kv_store, endpoint,
                                                  cash_session, items, totals):
        endpoint.offline = True
        kv_store.fail_writes = True
        with pytest.raises(OSError):
            await submitter.submit(cash_session, items, totals)
