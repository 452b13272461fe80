"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.connectivity import (
    IConnectivitySignal,
    NetworkStatus,
    StatusListener,
)
from src.core.interfaces.coupon_service import CouponValidation, ICouponService
from src.core.interfaces.product_catalog import IProductCatalog
from src.core.interfaces.sale_endpoint import ISaleEndpoint, SaleAck
from src.core.interfaces.storage import IKeyValueStore

__all__ = [
    # Remote interfaces
    "ISaleEndpoint",
    "SaleAck",
    "ICouponService",
    "CouponValidation",
    "IProductCatalog",
    # Connectivity
    "IConnectivitySignal",
    "NetworkStatus",
    "StatusListener",
    # Storage
    "IKeyValueStore",
]
