"""Abstract interface for the read-only product catalog."""

from abc import ABC, abstractmethod

from src.core.entities.cart import Product


class IProductCatalog(ABC):
    """Read-only source of products used to populate line items."""

    @abstractmethod
    async def list_products(self) -> list[Product]:
        """Fetch every sellable product."""
        pass

    @abstractmethod
    async def get_product(self, product_id: int) -> Product | None:
        """Fetch a single product, or None if unknown."""
        pass
