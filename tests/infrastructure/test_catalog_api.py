"""Tests for the product catalog HTTP client."""

from decimal import Decimal

import httpx
import pytest

from src.core.entities import ProductStatus
from src.core.exceptions import CatalogUnavailableError
from src.infrastructure.remote import CatalogApiClient
from src.infrastructure.remote.catalog_api import parse_product

ROWS = [
    {"id": 1, "name": "Bar Soap", "sku": "SOAP-1", "price": 250, "stock": 10,
     "category": {"id": 4, "name": "Toiletries"}, "brand": None},
    {"id": 2, "name": "Rice 5kg", "sku": "RICE-5", "price": "4200.00", "stock": 3,
     "category": "Grains", "brand": {"name": "Mama Gold"}, "status": "ACTIVE"},
]


def make_client(handler) -> CatalogApiClient:
    return CatalogApiClient(
        base_url="http://backend",
        max_retries=0,
        transport=httpx.MockTransport(handler),
    )


class TestParseProduct:
    """Tests for parse_product."""

    def test_nested_names(self):
        product = parse_product(ROWS[0])
        assert product.category == "Toiletries"
        assert product.brand is None
        assert product.price == Decimal("250")
        assert product.status == ProductStatus.ACTIVE

    def test_plain_names(self):
        product = parse_product(ROWS[1])
        assert product.category == "Grains"
        assert product.brand == "Mama Gold"


class TestListProducts:
    """Tests for CatalogApiClient.list_products."""

    @pytest.mark.parametrize("shape", ["products", "data", "bare"])
    async def test_response_shapes(self, shape):
        body = ROWS if shape == "bare" else {shape: ROWS}
        seen = {}

        def handler(request):
            seen["url"] = request.url
            return httpx.Response(200, json=body)

        products = await make_client(handler).list_products()

        assert [p.id for p in products] == [1, 2]
        assert seen["url"].path == "/api/pos/products"
        assert seen["url"].params["limit"] == "0"

    async def test_invalid_rows_skipped(self):
        body = {"products": [ROWS[0], {"name": "no id"}, {"id": 9, "price": "abc"}]}
        products = await make_client(lambda request: httpx.Response(200, json=body)).list_products()
        assert [p.id for p in products] == [1]

    async def test_get_product(self):
        client = make_client(lambda request: httpx.Response(200, json={"products": ROWS}))
        assert (await client.get_product(2)).name == "Rice 5kg"
        assert await client.get_product(99) is None

    async def test_http_error(self):
        client = make_client(lambda request: httpx.Response(500))
        with pytest.raises(CatalogUnavailableError):
            await client.list_products()

    async def test_not_json(self):
        client = make_client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(CatalogUnavailableError):
            await client.list_products()

    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(CatalogUnavailableError):
            await make_client(handler).list_products()
