import json
from decimal import Decimal

import httpx
import pytest
import respx

from pos_terminal.services.catalog_service import CatalogService, parse_products
from pos_terminal.utils.exceptions import CatalogLoadError, ProductNotFoundError

API_URL = "https://inventory.test/api/products"


@pytest.mark.asyncio
async def test_adjust_quantity_decrements_stock(catalog):
    product = await catalog.adjust_quantity("1", -3)
    assert product.quantity_on_hand == 117
    assert catalog.get("1").quantity_on_hand == 117


@pytest.mark.asyncio
async def test_stock_can_go_negative(catalog):
    await catalog.adjust_quantity("4", -30)
    assert catalog.get("4").quantity_on_hand == -5


@pytest.mark.asyncio
async def test_adjust_unknown_product_raises(catalog):
    with pytest.raises(ProductNotFoundError):
        await catalog.adjust_quantity("999", -1)


def test_parse_products_accepts_wrapped_payload():
    products = parse_products({"products": [
        {"id": 7, "sku": "T7", "name": "Tea", "price": 2.5, "quantityOnHand": 3},
    ]})
    assert products[0].id == "7"
    assert products[0].price == Decimal("2.5")
    assert products[0].quantity_on_hand == 3


def test_parse_products_rejects_bad_records():
    with pytest.raises(CatalogLoadError):
        parse_products({"unexpected": True})
    with pytest.raises(CatalogLoadError):
        parse_products([{"id": "1", "name": "No SKU"}])


def test_load_file_replaces_catalog(tmp_path):
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps([
        {"id": "10", "sku": "X10", "name": "Coffee Beans", "price": "11.00", "quantityOnHand": 5},
    ]))
    catalog = CatalogService(api_url="", api_key="")

    assert catalog.load_file(str(path)) == 1
    assert [p.sku for p in catalog.products()] == ["X10"]


def test_load_missing_file_raises(tmp_path):
    catalog = CatalogService(api_url="", api_key="")
    with pytest.raises(CatalogLoadError):
        catalog.load_file(str(tmp_path / "missing.json"))
    assert len(catalog.products()) == 6


@pytest.mark.asyncio
async def test_refresh_from_remote():
    catalog = CatalogService(api_url=API_URL, api_key="secret")
    with respx.mock() as respx_mock:
        route = respx_mock.get(API_URL).mock(
            return_value=httpx.Response(200, json={"items": [
                {"id": "1", "sku": "A1", "name": "Apple", "price": "1.60", "quantityOnHand": 80},
            ]})
        )

        count = await catalog.refresh_from_remote()

        assert count == 1
        assert route.called
        assert route.calls.last.request.headers["x-api-key"] == "secret"
    assert catalog.get("1").price == Decimal("1.60")


@pytest.mark.asyncio
async def test_refresh_failure_keeps_catalog():
    catalog = CatalogService(api_url=API_URL, api_key="")
    with respx.mock() as respx_mock:
        respx_mock.get(API_URL).mock(return_value=httpx.Response(502))

        assert await catalog.refresh_from_remote() == -1
    assert len(catalog.products()) == 6


@pytest.mark.asyncio
async def test_refresh_without_url_is_skipped():
    catalog = CatalogService(api_url="", api_key="")
    assert await catalog.refresh_from_remote() == -1
