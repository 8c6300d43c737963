from __future__ import annotations

from ..models import Customer
from .client import LaravelClient, unwrap_list


class CustomerProvider:
    def __init__(self, client: LaravelClient):
        self.client = client

    def search(self, branch_id: int, query: str | None = None) -> list[Customer]:
        body = self.client.get("/api/customers", params={
            "branch_id": branch_id,
            "search": query,
        })
        return [Customer.from_api(row) for row in unwrap_list(body)]

    def get(self, customer_id: int) -> Customer | None:
        body = self.client.get_or_none(f"/api/customers/{customer_id}")
        if not body:
            return None
        if "data" in body and isinstance(body["data"], dict):
            body = body["data"]
        return Customer.from_api(body)
