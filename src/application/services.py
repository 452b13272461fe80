"""
Service factory functions for dependency injection.

This module wires infrastructure implementations to core services.
Use cases and the API import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from src.config import get_settings
from src.core.entities.customer import StaffIdentity
from src.core.services import (
    CartStore,
    CheckoutWizard,
    DefaultFailureClassifier,
    OfflineQueue,
    ProductCache,
    QueueLog,
    SaleDispatcher,
    SaleSubmitter,
)

if TYPE_CHECKING:
    from src.core.interfaces import (
        IConnectivitySignal,
        ICouponService,
        IKeyValueStore,
        ISaleEndpoint,
    )
    from src.infrastructure.connectivity import ConnectivityMonitor


# Singleton service instances
_connectivity_monitor: "ConnectivityMonitor | None" = None
_sale_dispatcher: SaleDispatcher | None = None
_offline_queue: OfflineQueue | None = None
_product_cache: ProductCache | None = None
_sale_submitter: SaleSubmitter | None = None


def get_connectivity_monitor() -> "ConnectivityMonitor":
    """Get or create the health-probe connectivity monitor."""
    global _connectivity_monitor

    if _connectivity_monitor is None:
        from src.infrastructure.connectivity import ConnectivityMonitor

        _connectivity_monitor = ConnectivityMonitor()
    return _connectivity_monitor


def get_sale_dispatcher(endpoint: "ISaleEndpoint | None" = None) -> SaleDispatcher:
    """
    Get or create the SaleDispatcher.

    Args:
        endpoint: Optional sale endpoint override (not cached)
    """
    global _sale_dispatcher

    if endpoint is not None:
        return SaleDispatcher(endpoint, DefaultFailureClassifier())

    if _sale_dispatcher is None:
        from src.infrastructure.remote import SalesApiClient

        _sale_dispatcher = SaleDispatcher(SalesApiClient(), DefaultFailureClassifier())
    return _sale_dispatcher


def _default_store() -> "IKeyValueStore":
    from src.infrastructure.storage.sqlite import get_kv_store

    return get_kv_store()


def get_offline_queue(
    store: "IKeyValueStore | None" = None,
    dispatcher: SaleDispatcher | None = None,
    connectivity: "IConnectivitySignal | None" = None,
) -> OfflineQueue:
    """
    Get or create the OfflineQueue.

    Overrides produce a fresh, uncached instance.

    Args:
        store: Optional key-value store override
        dispatcher: Optional dispatcher override
        connectivity: Optional connectivity signal override
    """
    global _offline_queue

    overridden = any(x is not None for x in (store, dispatcher, connectivity))
    if _offline_queue is not None and not overridden:
        return _offline_queue

    settings = get_settings()
    queue = OfflineQueue(
        log=QueueLog(store or _default_store()),
        dispatcher=dispatcher or get_sale_dispatcher(),
        connectivity=connectivity or get_connectivity_monitor(),
        sync_interval=settings.offline.sync_interval_seconds,
        reconnect_delay=settings.offline.reconnect_delay_seconds,
    )

    if not overridden:
        _offline_queue = queue
    return queue


def get_product_cache(store: "IKeyValueStore | None" = None) -> ProductCache:
    """Get or create the offline product cache."""
    global _product_cache

    if store is not None:
        return ProductCache(store)
    if _product_cache is None:
        _product_cache = ProductCache(_default_store())
    return _product_cache


def get_staff_identity() -> StaffIdentity:
    settings = get_settings()
    return StaffIdentity(id=settings.checkout.staff_id, name=settings.checkout.staff_name)


def get_sale_submitter() -> SaleSubmitter:
    """Get or create the SaleSubmitter bound to the shared queue."""
    global _sale_submitter

    if _sale_submitter is None:
        _sale_submitter = SaleSubmitter(
            dispatcher=get_sale_dispatcher(),
            queue=get_offline_queue(),
            staff=get_staff_identity(),
            connectivity=get_connectivity_monitor(),
        )
    return _sale_submitter


def create_checkout(
    cart: CartStore | None = None,
    submitter: SaleSubmitter | None = None,
    coupon_service: "ICouponService | None" = None,
) -> CheckoutWizard:
    """
    Build a CheckoutWizard over a cart.

    Wizards are per-terminal and never cached.
    """
    if coupon_service is None:
        from src.infrastructure.remote import CouponsApiClient

        coupon_service = CouponsApiClient()

    return CheckoutWizard(
        cart=cart or CartStore(),
        submitter=submitter or get_sale_submitter(),
        coupon_service=coupon_service,
    )


def reset_services() -> None:
    """
    Reset all singleton service instances.

    Useful for testing or when configuration changes.
    """
    global _connectivity_monitor
    global _sale_dispatcher
    global _offline_queue
    global _product_cache
    global _sale_submitter

    _connectivity_monitor = None
    _sale_dispatcher = None
    _offline_queue = None
    _product_cache = None
    _sale_submitter = None


__all__ = [
    # Factory functions
    "get_connectivity_monitor",
    "get_sale_dispatcher",
    "get_offline_queue",
    "get_product_cache",
    "get_staff_identity",
    "get_sale_submitter",
    "create_checkout",
    # Reset
    "reset_services",
]
