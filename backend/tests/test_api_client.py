import unittest
from decimal import Decimal

import httpx

from branchwise.api import LaravelClient, unwrap_list
from branchwise.api.catalog import CatalogProvider
from branchwise.errors import ProviderError
from branchwise.models import Branch, Product


def client_for(handler, **kwargs):
    return LaravelClient("http://back-office.test/", transport=httpx.MockTransport(handler), **kwargs)


class LaravelClientTests(unittest.TestCase):
    def test_sends_json_headers_and_token(self):
        seen = {}

        def handler(request):
            seen.update(request.headers)
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"ok": True})

        client = client_for(handler, token="secret")
        self.assertEqual(client.get("/api/ping", params={"a": 1, "b": None, "c": ""}), {"ok": True})
        self.assertEqual(seen["authorization"], "Bearer secret")
        self.assertEqual(seen["accept"], "application/json")
        self.assertEqual(seen["url"], "http://back-office.test/api/ping?a=1")

    def test_error_message_from_body(self):
        client = client_for(lambda request: httpx.Response(422, json={"message": "Insufficient stock for Rice"}))
        with self.assertRaises(ProviderError) as ctx:
            client.post("/api/pos/transactions", json={})
        self.assertEqual(ctx.exception.message, "Insufficient stock for Rice")
        self.assertEqual(ctx.exception.provider_status, 422)
        self.assertEqual(ctx.exception.status_code, 502)

    def test_error_message_from_validation_errors(self):
        body = {"errors": {"starting_balance": ["The starting balance field is required."]}}
        client = client_for(lambda request: httpx.Response(422, json=body))
        with self.assertRaises(ProviderError) as ctx:
            client.post("/api/shifts/start", json={})
        self.assertEqual(ctx.exception.message, "The starting balance field is required.")

    def test_generic_message_without_body(self):
        client = client_for(lambda request: httpx.Response(500, text="<html>oops</html>"))
        with self.assertRaises(ProviderError) as ctx:
            client.get("/api/sales")
        self.assertEqual(ctx.exception.message, "Server error. Please try again.")

    def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(ProviderError) as ctx:
            client_for(handler).get("/api/sales")
        self.assertIsNone(ctx.exception.provider_status)
        self.assertEqual(ctx.exception.to_dict()["code"], "provider_error")

    def test_get_or_none_on_404(self):
        client = client_for(lambda request: httpx.Response(404, json={"message": "Not found"}))
        with self.assertNoLogs("branchwise.api.client", level="ERROR"):
            self.assertIsNone(client.get_or_none("/api/shifts/active"))

    def test_get_or_none_still_raises_other_errors(self):
        client = client_for(lambda request: httpx.Response(503, json={"message": "Maintenance"}))
        with self.assertLogs("branchwise.api.client", level="ERROR"):
            with self.assertRaises(ProviderError) as ctx:
                client.get_or_none("/api/shifts/active")
        self.assertEqual(ctx.exception.provider_status, 503)

    def test_plain_get_404_is_an_error(self):
        client = client_for(lambda request: httpx.Response(404, json={"message": "Not found"}))
        with self.assertRaises(ProviderError) as ctx:
            client.get("/api/sales/9")
        self.assertEqual(ctx.exception.provider_status, 404)

    def test_unwrap_list(self):
        self.assertEqual(unwrap_list(None), [])
        self.assertEqual(unwrap_list([1, 2]), [1, 2])
        self.assertEqual(unwrap_list({"data": [3]}), [3])
        self.assertEqual(unwrap_list({"data": None}), [])


class CatalogProviderTests(unittest.TestCase):
    def test_paginated_search(self):
        def handler(request):
            self.assertEqual(request.url.params["limit"], "12")
            self.assertNotIn("search", request.url.params)
            return httpx.Response(200, json={
                "data": [{"id": 1, "name": "Rice", "price": "100000.00", "quantity": 4}],
                "total": 30,
            })

        page = CatalogProvider(client_for(handler)).search(1, None, 2, 12)
        self.assertEqual(page.total, 30)
        self.assertEqual(page.total_pages, 3)
        self.assertEqual(page.items[0].quantity, 4)
        self.assertEqual(str(page.items[0].price), "100000.00")


class RecordParsingTests(unittest.TestCase):
    def test_fractional_tax_rate_is_kept(self):
        branch = Branch.from_api({"id": 2, "tax_rate": "12.50"})
        self.assertEqual(branch.tax_fraction, Decimal("0.125"))
        self.assertEqual(branch.to_dict()["tax_rate"], 12.5)

    def test_missing_tax_rate_is_zero(self):
        self.assertEqual(Branch.from_api({"id": 2, "tax_rate": None}).tax_fraction, Decimal("0"))

    def test_decimal_string_quantity(self):
        product = Product.from_api({"id": 1, "name": "Rice", "price": "100000.00", "quantity": "5.00"})
        self.assertEqual(product.quantity, 5)
        self.assertEqual(Product.from_api({"id": 1, "price": 1, "quantity": None}).quantity, 0)


if __name__ == "__main__":
    unittest.main()
