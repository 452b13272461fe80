"""
Cart store.

Holds the in-progress cart as an insertion-ordered mapping keyed by product
id, so a product can only ever appear once. Quantities are clamped to the
stock on hand; mutations never raise.
"""

from decimal import Decimal

from src.config import get_logger
from src.core.entities.cart import LineItem, Product
from src.core.entities.discount import DiscountSpec
from src.core.services.calculator import Totals, compute_totals

logger = get_logger(__name__)


class CartSnapshot:
    """Opaque copy of a cart's contents, used for rollback."""

    def __init__(self, items: dict[int, LineItem], version: int):
        self.items = items
        self.version = version


class CartStore:
    """
    Ordered, product-keyed cart of line items.

    Every mutation bumps ``version`` and drops the cached totals.
    """

    def __init__(self) -> None:
        self._items: dict[int, LineItem] = {}
        self._version = 0
        self._totals_cache: tuple[int, DiscountSpec, Totals] | None = None

    # === Queries ===

    @property
    def items(self) -> list[LineItem]:
        return list(self._items.values())

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def item_count(self) -> int:
        """Total units across all lines."""
        return sum(item.quantity for item in self._items.values())

    @property
    def version(self) -> int:
        return self._version

    def get(self, product_id: int) -> LineItem | None:
        return self._items.get(product_id)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def totals(self, discount: DiscountSpec | None = None) -> Totals:
        """Price the cart, reusing the last result while nothing has changed."""
        discount = discount or DiscountSpec.none()
        cached = self._totals_cache
        if cached is not None and cached[0] == self._version and cached[1] == discount:
            return cached[2]

        totals = compute_totals(self._items.values(), discount)
        self._totals_cache = (self._version, discount, totals)
        return totals

    # === Mutations ===

    def add(self, product: Product) -> LineItem:
        """
        Add one unit of a product.

        An existing line is incremented up to the product's current stock;
        a new line starts at one unit, or zero when the product is out of stock.
        """
        existing = self._items.get(product.id)
        if existing is not None:
            stock = max(product.stock, 0)
            existing.available_stock = stock
            existing.quantity = min(existing.quantity + 1, stock)
            existing.unit_price = max(product.price, Decimal("0"))
            item = existing
        else:
            item = LineItem.from_product(product, quantity=1)
            self._items[product.id] = item

        self._touch()
        logger.debug(
            "cart_item_added",
            product_id=product.id,
            quantity=item.quantity,
            available_stock=item.available_stock,
        )
        return item

    def set_quantity(self, product_id: int, quantity: int) -> LineItem | None:
        """
        Set a line's quantity, clamped to stock.

        Zero or less removes the line. Unknown product ids are ignored.
        """
        item = self._items.get(product_id)
        if item is None:
            return None

        if quantity <= 0:
            self.remove(product_id)
            return None

        item.quantity = min(quantity, item.available_stock)
        self._touch()
        return item

    def remove(self, product_id: int) -> bool:
        if self._items.pop(product_id, None) is None:
            return False
        self._touch()
        logger.debug("cart_item_removed", product_id=product_id)
        return True

    def clear(self) -> None:
        self._items.clear()
        self._touch()

    # === Snapshots ===

    def snapshot(self) -> CartSnapshot:
        """Copy the current contents so they can be restored later."""
        return CartSnapshot(
            items={pid: item.model_copy() for pid, item in self._items.items()},
            version=self._version,
        )

    def restore(self, snapshot: CartSnapshot) -> None:
        self._items = {pid: item.model_copy() for pid, item in snapshot.items.items()}
        self._touch()

    def _touch(self) -> None:
        self._version += 1
        self._totals_cache = None
