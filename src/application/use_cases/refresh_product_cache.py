"""Refresh Product Cache Use Case: copy the catalog for offline use."""

from src.application.dto.responses import ProductCacheRefreshResponse
from src.config import get_logger
from src.core.interfaces.product_catalog import IProductCatalog
from src.core.services.product_cache import ProductCache

logger = get_logger(__name__)


class RefreshProductCacheUseCase:
    """Fetch the live catalog and store it in the offline cache."""

    def __init__(
        self,
        catalog: IProductCatalog | None = None,
        cache: ProductCache | None = None,
    ):
        self._catalog = catalog
        self._cache = cache

    def _get_catalog(self) -> IProductCatalog:
        if self._catalog is None:
            from src.infrastructure.remote import CatalogApiClient

            self._catalog = CatalogApiClient()
        return self._catalog

    def _get_cache(self) -> ProductCache:
        if self._cache is None:
            from src.application.services import get_product_cache

            self._cache = get_product_cache()
        return self._cache

    async def execute(self) -> ProductCacheRefreshResponse:
        logger.info("refresh_product_cache_started")
        cache = self._get_cache()
        count = await cache.refresh(self._get_catalog())
        logger.info("refresh_product_cache_complete", count=count)
        return ProductCacheRefreshResponse(
            count=count,
            last_product_sync=await cache.last_product_sync(),
        )
