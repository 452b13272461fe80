"""HTTP client for the backend's product list."""

from typing import Any

import httpx
from pydantic import ValidationError

from src.config import get_logger, get_settings
from src.core.entities.cart import Product
from src.core.exceptions import CatalogUnavailableError
from src.core.interfaces.product_catalog import IProductCatalog
from src.infrastructure.remote.base import BaseRemoteClient

logger = get_logger(__name__)


def _name_of(value: Any) -> str | None:
    """Categories and brands arrive either as names or as ``{"name": ...}``."""
    if isinstance(value, dict):
        value = value.get("name")
    return str(value) if value else None


def parse_product(raw: dict[str, Any]) -> Product:
    return Product(
        id=raw["id"],
        name=raw.get("name", ""),
        sku=raw.get("sku") or "",
        price=raw.get("price") or 0,
        stock=raw.get("stock") or 0,
        barcode=raw.get("barcode"),
        category=_name_of(raw.get("category")),
        brand=_name_of(raw.get("brand")),
        status=raw.get("status") or "ACTIVE",
    )


class CatalogApiClient(BaseRemoteClient, IProductCatalog):
    """Reads products from ``REMOTE_PRODUCTS_PATH``."""

    def __init__(self, path: str | None = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.path = path or get_settings().remote.products_path

    async def list_products(self) -> list[Product]:
        try:
            response = await self._request("GET", self.path, params={"limit": 0})
        except httpx.RequestError as e:
            raise CatalogUnavailableError(str(e) or type(e).__name__) from e
        if response.status_code >= 400:
            raise CatalogUnavailableError(f"HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise CatalogUnavailableError("response is not JSON") from e

        rows = body.get("products", body.get("data", [])) if isinstance(body, dict) else body
        products = []
        skipped = 0
        for raw in rows or []:
            try:
                products.append(parse_product(raw))
            except (KeyError, TypeError, ValidationError):
                skipped += 1

        if skipped:
            logger.warning("catalog_products_skipped", count=skipped)
        logger.info("catalog_fetched", count=len(products))
        return products

    async def get_product(self, product_id: int) -> Product | None:
        for product in await self.list_products():
            if product.id == product_id:
                return product
        return None
