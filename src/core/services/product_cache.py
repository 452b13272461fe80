"""
Offline product cache.

Keeps a copy of the catalog in the durable store so items can still be
rung up while the backend is unreachable.
"""

from datetime import UTC, datetime

from pydantic import ValidationError

from src.config import get_logger
from src.core.entities.cart import Product
from src.core.exceptions import ProductNotCachedError
from src.core.interfaces.product_catalog import IProductCatalog
from src.core.interfaces.storage import IKeyValueStore

logger = get_logger(__name__)


class ProductCache(IProductCatalog):
    """Catalog backed by the local key-value store."""

    def __init__(self, store: IKeyValueStore, namespace: str = "product_cache"):
        self._store = store
        self._ns = namespace

    def _product_key(self, product_id: int) -> str:
        return f"{self._ns}:product:{product_id:012d}"

    @property
    def _product_prefix(self) -> str:
        return f"{self._ns}:product:"

    @property
    def _sync_key(self) -> str:
        return f"{self._ns}:meta:last_product_sync"

    async def refresh(self, source: IProductCatalog) -> int:
        """
        Replace the cached catalog with a fresh copy from ``source``.

        The old copy is kept if the source fails.
        """
        products = await source.list_products()

        fresh_keys = set()
        for product in products:
            key = self._product_key(product.id)
            await self._store.set(key, product.model_dump_json())
            fresh_keys.add(key)

        stale = [k for k in await self._store.keys(self._product_prefix) if k not in fresh_keys]
        await self._store.delete_many(stale)

        await self._store.set(self._sync_key, datetime.now(UTC).isoformat())
        logger.info("product_cache_refreshed", count=len(products), removed=len(stale))
        return len(products)

    async def last_product_sync(self) -> datetime | None:
        raw = await self._store.get(self._sync_key)
        return datetime.fromisoformat(raw) if raw else None

    async def list_products(self) -> list[Product]:
        products = []
        for key in await self._store.keys(self._product_prefix):
            product = await self._load(key)
            if product is not None:
                products.append(product)
        return products

    async def get_product(self, product_id: int) -> Product | None:
        return await self._load(self._product_key(product_id))

    async def require_product(self, product_id: int) -> Product:
        product = await self.get_product(product_id)
        if product is None:
            raise ProductNotCachedError(product_id)
        return product

    async def find_by_barcode(self, barcode: str) -> Product | None:
        barcode = barcode.strip()
        if not barcode:
            return None
        for product in await self.list_products():
            if product.barcode == barcode:
                return product
        return None

    async def search(self, term: str, limit: int = 50) -> list[Product]:
        """Active products whose name, sku, barcode, category or brand contain term."""
        needle = term.strip().lower()
        results = []
        for product in await self.list_products():
            if not product.is_active:
                continue
            haystack = (
                product.name,
                product.sku,
                product.barcode or "",
                product.category or "",
                product.brand or "",
            )
            if not needle or any(needle in field.lower() for field in haystack):
                results.append(product)
                if len(results) >= limit:
                    break
        return results

    async def _load(self, key: str) -> Product | None:
        raw = await self._store.get(key)
        if raw is None:
            return None
        try:
            return Product.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("product_cache_entry_invalid", key=key, errors=e.error_count())
            return None
