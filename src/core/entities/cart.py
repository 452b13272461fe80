"""Catalog product and cart line item entities."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


class ProductStatus(str, Enum):
    """Catalog availability of a product."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    DISCONTINUED = "DISCONTINUED"


class Product(BaseModel):
    """Read-only product record as served by the catalog."""

    id: int
    name: str
    sku: str = ""
    price: Decimal = Decimal("0")
    stock: int = 0
    barcode: str | None = None
    category: str | None = None
    brand: str | None = None
    status: ProductStatus = ProductStatus.ACTIVE

    @field_validator("stock", mode="before")
    @classmethod
    def non_negative_stock(cls, v: object) -> object:
        if isinstance(v, (int, float)) and v < 0:
            return 0
        return v

    @property
    def is_active(self) -> bool:
        return self.status == ProductStatus.ACTIVE


class LineItem(BaseModel):
    """A single product row in the cart."""

    product_id: int
    name: str
    sku: str = ""
    unit_price: Decimal = Decimal("0")
    quantity: int = Field(default=1, ge=0)
    available_stock: int = Field(default=0, ge=0)
    category: str | None = None
    brand: str | None = None

    @field_validator("unit_price", mode="after")
    @classmethod
    def non_negative_price(cls, v: Decimal) -> Decimal:
        return v if v > 0 else Decimal("0")

    @model_validator(mode="after")
    def clamp_quantity(self) -> "LineItem":
        """Quantity never exceeds the stock on hand."""
        if self.quantity > self.available_stock:
            self.quantity = self.available_stock
        return self

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_product(cls, product: Product, quantity: int = 1) -> "LineItem":
        """Build a line item from a catalog product, clamped to its stock."""
        return cls(
            product_id=product.id,
            name=product.name,
            sku=product.sku,
            unit_price=product.price,
            quantity=min(quantity, product.stock),
            available_stock=product.stock,
            category=product.category,
            brand=product.brand,
        )
