"""
Pytest fixtures for branchwise tests.

Provides an in-memory fake of the Laravel back office (served to the
terminal through httpx.MockTransport), the Flask app and test client, and
a SaleSession wired straight to the fake.
"""

import json
import re
from decimal import Decimal

import httpx
import pytest

from branchwise import create_app
from branchwise.api import (
    BankAccountProvider,
    CatalogProvider,
    CustomerProvider,
    LaravelClient,
    SalesProvider,
    ShiftProvider,
)
from branchwise.services.session_service import Providers, SaleSession, TerminalContext


BASE_URL = "http://back-office.test"
BRANCH_ID = 1
USER_ID = 7


class FakeBackOffice:
    """
    Just enough of the Laravel API for the terminal.

    Every request is recorded in `requests` as (method, path, params, body,
    headers). `fail(method, path, ...)` makes the next matching calls return
    an error response until `recover()` is called.
    """

    def __init__(self):
        self.branches = {
            BRANCH_ID: {"id": BRANCH_ID, "name": "Main Branch", "tax_rate": 11, "currency": "IDR"},
        }
        self.products = {}
        self.customers = {}
        self.bank_accounts = []
        self.active_shift = None
        self.sales = []
        self.requests = []
        self.failures = {}
        self._next_shift_id = 1
        self._next_sale_id = 100

    # -- seeding ------------------------------------------------------------

    def add_product(self, id, name, price, quantity, cost_price=0):
        self.products[id] = {
            "id": id,
            "name": name,
            "price": f"{price}.00",
            "cost_price": f"{cost_price}.00",
            "quantity": quantity,
        }
        return self.products[id]

    def add_customer(self, id, name, **extra):
        self.customers[id] = {"id": id, "name": name, **extra}
        return self.customers[id]

    def add_bank_account(self, id, bank_name, is_active=True):
        self.bank_accounts.append({
            "id": id,
            "bank_name": bank_name,
            "account_number": f"00{id}",
            "account_holder_name": "PT Branchwise",
            "is_active": is_active,
        })

    def open_shift(self, starting_balance=100000):
        self.active_shift = {
            "id": self._next_shift_id,
            "status": "open",
            "branch_id": BRANCH_ID,
            "user_id": USER_ID,
            "user_name": "Cashier",
            "starting_balance": starting_balance,
            "start_shift": "2024-05-01 08:00:00",
        }
        self._next_shift_id += 1
        return self.active_shift

    def add_sale(self, shift_id, payment_method, total_amount, status="completed"):
        sale = {
            "id": self._next_sale_id,
            "transaction_number": f"TRX-{self._next_sale_id}",
            "shift_id": shift_id,
            "status": status,
            "payment_method": payment_method,
            "total_amount": total_amount,
        }
        self._next_sale_id += 1
        self.sales.append(sale)
        return sale

    def fail(self, method, path, status=500, message="Server error"):
        self.failures[(method, path)] = (status, message)

    def recover(self):
        self.failures.clear()

    def calls(self, method, path):
        return [r for r in self.requests if r[0] == method and r[1] == path]

    # -- transport ----------------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        params = dict(request.url.params)
        body = json.loads(request.content) if request.content else None
        self.requests.append((method, path, params, body, dict(request.headers)))

        if (method, path) in self.failures:
            status, message = self.failures[(method, path)]
            return httpx.Response(status, json={"message": message})

        if method == "GET" and path == "/api/shifts/active":
            if self.active_shift is None:
                return httpx.Response(404, json={"message": "No active shift"})
            return httpx.Response(200, json=self.active_shift)

        if method == "POST" and path == "/api/shifts/start":
            if self.active_shift is not None:
                return httpx.Response(422, json={"message": "You already have an active shift"})
            shift = self.open_shift(body["starting_balance"])
            return httpx.Response(201, json=shift)

        if method == "POST" and path == "/api/shifts/end":
            closed = dict(self.active_shift, **body)
            closed["status"] = "closed"
            closed["cash_difference"] = body["actual_balance"] - body["ending_balance"]
            closed["end_shift"] = "2024-05-01 17:00:00"
            self.active_shift = None
            return httpx.Response(200, json=closed)

        if method == "GET" and path == "/api/products":
            rows = list(self.products.values())
            search = params.get("search")
            if search:
                rows = [p for p in rows if search.lower() in p["name"].lower()]
            page = int(params.get("page", 1))
            limit = int(params.get("limit", 12))
            start = (page - 1) * limit
            return httpx.Response(200, json={
                "data": rows[start:start + limit],
                "total": len(rows),
                "current_page": page,
            })

        match = re.fullmatch(r"/api/products/(\d+)", path)
        if method == "GET" and match:
            product = self.products.get(int(match.group(1)))
            if product is None:
                return httpx.Response(404, json={"message": "Product not found"})
            return httpx.Response(200, json={"data": product})

        if method == "GET" and path == "/api/customers":
            rows = list(self.customers.values())
            search = params.get("search")
            if search:
                rows = [c for c in rows if search.lower() in c["name"].lower()]
            return httpx.Response(200, json=rows)

        match = re.fullmatch(r"/api/customers/(\d+)", path)
        if method == "GET" and match:
            customer = self.customers.get(int(match.group(1)))
            if customer is None:
                return httpx.Response(404, json={"message": "Customer not found"})
            return httpx.Response(200, json=customer)

        match = re.fullmatch(r"/api/branches/(\d+)", path)
        if method == "GET" and match:
            branch = self.branches.get(int(match.group(1)))
            if branch is None:
                return httpx.Response(404, json={"message": "Branch not found"})
            return httpx.Response(200, json={"data": branch})

        if method == "GET" and path == "/api/bank-accounts":
            return httpx.Response(200, json={"data": self.bank_accounts})

        if method == "POST" and path == "/api/pos/transactions":
            sale = self.add_sale(body["shift_id"], body["payment_method"], body["total_amount"])
            sale.update({
                "amount_paid": body["amount_paid"],
                "change_given": body["change_given"],
                "payment_status": body["payment_status"],
                "customer_id": body.get("customer_id"),
                "customer_name": body.get("customer_name"),
                "items": body["items"],
                "created_at": "2024-05-01T10:15:00Z",
            })
            return httpx.Response(201, json={"data": {"id": sale["id"]}})

        if method == "GET" and path == "/api/sales":
            rows = self.sales
            if params.get("shift_id"):
                rows = [s for s in rows if s["shift_id"] == int(params["shift_id"])]
            return httpx.Response(200, json={"data": rows})

        match = re.fullmatch(r"/api/sales/(\d+)", path)
        if method == "GET" and match:
            for sale in self.sales:
                if sale["id"] == int(match.group(1)):
                    return httpx.Response(200, json={"data": sale})
            return httpx.Response(404, json={"message": "Sale not found"})

        return httpx.Response(404, json={"message": f"No route for {method} {path}"})


@pytest.fixture(scope='function')
def back_office():
    """Fresh fake back office with a small catalog."""
    fake = FakeBackOffice()
    fake.add_product(1, "Rice 5kg", 100000, quantity=10, cost_price=80000)
    fake.add_product(2, "Cooking Oil 2L", 35000, quantity=2, cost_price=30000)
    fake.add_product(3, "Sugar 1kg", 15000, quantity=0, cost_price=12000)
    fake.add_customer(5, "Toko Sinar", phone="0812000111", credit_limit="5000000.00")
    fake.add_bank_account(1, "BCA")
    fake.add_bank_account(2, "Mandiri", is_active=False)
    return fake


@pytest.fixture(scope='function')
def laravel_client(back_office):
    client = LaravelClient(BASE_URL, token="test-token", transport=httpx.MockTransport(back_office.handler))
    yield client
    client.close()


@pytest.fixture(scope='function')
def providers(laravel_client):
    return Providers(
        catalog=CatalogProvider(laravel_client),
        customers=CustomerProvider(laravel_client),
        shifts=ShiftProvider(laravel_client),
        sales=SalesProvider(laravel_client),
        bank_accounts=BankAccountProvider(laravel_client),
    )


@pytest.fixture(scope='function')
def sale_session(providers):
    """Session at the 11% branch, loaded with no active shift."""
    context = TerminalContext(branch_id=BRANCH_ID, user_id=USER_ID, tax_rate=Decimal("0.11"))
    session = SaleSession(context, providers)
    session.load()
    return session


@pytest.fixture(scope='function')
def open_session(sale_session):
    """Session with a 100,000 float shift already open."""
    sale_session.start_shift(100000)
    return sale_session


@pytest.fixture(scope='function')
def app(back_office):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'POS_API_URL': BASE_URL,
        'POS_API_TRANSPORT': httpx.MockTransport(back_office.handler),
        'POS_BRANCH_ID': BRANCH_ID,
        'POS_USER_ID': USER_ID,
        'CORS_ALLOWED_ORIGINS': ["http://localhost:3000"],
    })
    yield app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()
