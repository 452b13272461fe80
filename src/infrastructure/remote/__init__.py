"""HTTP adapters for the POS backend."""

from src.infrastructure.remote.base import BaseRemoteClient
from src.infrastructure.remote.catalog_api import CatalogApiClient
from src.infrastructure.remote.coupons_api import CouponsApiClient
from src.infrastructure.remote.sales_api import SalesApiClient

__all__ = [
    "BaseRemoteClient",
    "SalesApiClient",
    "CouponsApiClient",
    "CatalogApiClient",
]
