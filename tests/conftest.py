"""Pytest configuration and shared fakes."""

import asyncio
from collections.abc import Awaitable, Callable, Generator
from decimal import Decimal
from typing import Any

import pytest

from src.application.services import reset_services
from src.config import reset_settings
from src.core.entities import LineItem, PaymentMethod, PaymentTender, Product, Sale, StaffIdentity
from src.core.exceptions import SaleEndpointUnreachableError
from src.core.interfaces import (
    IConnectivitySignal,
    IKeyValueStore,
    ISaleEndpoint,
    NetworkStatus,
    SaleAck,
    StatusListener,
)
from src.core.services import (
    CartStore,
    OfflineQueue,
    QueueLog,
    SaleDispatcher,
    SaleSubmitter,
)
from src.infrastructure.storage.sqlite import reset_kv_store


class InMemoryKeyValueStore(IKeyValueStore):
    """Dict-backed store; ``fail_writes`` makes every write raise."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.fail_writes = False

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError("disk full")
        self.data[key] = value

    async def delete(self, key: str) -> bool:
        if self.fail_writes:
            raise OSError("disk full")
        return self.data.pop(key, None) is not None

    async def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self.data if k.startswith(prefix))


class FakeConnectivity(IConnectivitySignal):
    """Manually switched online/offline signal."""

    def __init__(self, online: bool = True):
        self._status = NetworkStatus(is_online=online)
        self.listeners: list[StatusListener] = []

    @property
    def is_online(self) -> bool:
        return self._status.is_online

    def status(self) -> NetworkStatus:
        return self._status

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        self.listeners.append(listener)
        listener(self._status)
        return lambda: self.listeners.remove(listener)

    def set_online(self, online: bool = True) -> None:
        if online == self._status.is_online:
            return
        self._status = NetworkStatus(is_online=online)
        for listener in list(self.listeners):
            listener(self._status)


class FakeSaleEndpoint(ISaleEndpoint):
    """
    Idempotent in-memory backend.

    Exceptions pushed onto ``failures`` are raised by the next submissions,
    in order; ``failures_by_key`` fails one specific sale once. Every call
    is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.records: dict[str, str] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.failures: list[Exception] = []
        self.failures_by_key: dict[str, Exception] = {}
        self.offline = False

    async def submit(self, payload: dict[str, Any], idempotency_key: str) -> SaleAck:
        self.calls.append((idempotency_key, payload))
        if self.failures:
            raise self.failures.pop(0)
        if idempotency_key in self.failures_by_key:
            raise self.failures_by_key.pop(idempotency_key)
        if self.offline:
            raise SaleEndpointUnreachableError("connection refused")
        if idempotency_key in self.records:
            return SaleAck(sale_id=self.records[idempotency_key], duplicate=True)
        sale_id = f"srv-{len(self.records) + 1}"
        self.records[idempotency_key] = sale_id
        return SaleAck(sale_id=sale_id)

    @property
    def submitted_keys(self) -> list[str]:
        return [key for key, _ in self.calls]


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch) -> Generator[None, None, None]:
    """Point storage at a temp dir and drop every cached singleton."""
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path / "data"))
    reset_settings()
    reset_services()
    reset_kv_store()
    yield
    reset_settings()
    reset_services()
    reset_kv_store()


@pytest.fixture
def products() -> dict[str, Product]:
    return {
        "soap": Product(id=1, name="Bar Soap", sku="SOAP-1", price=Decimal("250.00"), stock=10,
                        barcode="600100", category="Toiletries"),
        "rice": Product(id=2, name="Rice 5kg", sku="RICE-5", price=Decimal("4200.00"), stock=3,
                        barcode="600200", category="Grains", brand="Mama Gold"),
        "milk": Product(id=3, name="Milk 1L", sku="MILK-1", price=Decimal("1250.50"), stock=0),
    }


@pytest.fixture
def staff() -> StaffIdentity:
    return StaffIdentity(id=7, name="Ada")


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def connectivity() -> FakeConnectivity:
    return FakeConnectivity(online=True)


@pytest.fixture
def endpoint() -> FakeSaleEndpoint:
    return FakeSaleEndpoint()


@pytest.fixture
def dispatcher(endpoint) -> SaleDispatcher:
    return SaleDispatcher(endpoint)


@pytest.fixture
def queue_log(kv_store) -> QueueLog:
    return QueueLog(kv_store)


@pytest.fixture
def queue(queue_log, dispatcher, connectivity) -> OfflineQueue:
    return OfflineQueue(
        log=queue_log,
        dispatcher=dispatcher,
        connectivity=connectivity,
        sync_interval=0,
        reconnect_delay=0,
    )


@pytest.fixture
def submitter(dispatcher, queue, staff, connectivity) -> SaleSubmitter:
    return SaleSubmitter(dispatcher=dispatcher, queue=queue, staff=staff, connectivity=connectivity)


@pytest.fixture
def cart() -> CartStore:
    return CartStore()


@pytest.fixture
def make_sale(products, staff) -> Callable[..., Sale]:
    """Factory for a one-line cash sale."""

    def _make(total: str = "250.00", **overrides: Any) -> Sale:
        amount = Decimal(total)
        fields: dict[str, Any] = {
            "items": (LineItem.from_product(products["soap"]),),
            "subtotal": amount,
            "discount": Decimal("0"),
            "total": amount,
            "tenders": (PaymentTender(method=PaymentMethod.CASH, amount=amount),),
            "amount_paid": amount,
            "single_method": PaymentMethod.CASH,
            "staff_id": staff.id,
            "staff_name": staff.name,
        }
        fields.update(overrides)
        return Sale(**fields)

    return _make


@pytest.fixture
def wait_until() -> Callable[..., Awaitable[None]]:
    """Poll a condition while background tasks run."""

    async def _wait(condition: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not condition():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.01)

    return _wait
