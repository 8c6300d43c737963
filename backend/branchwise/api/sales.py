from __future__ import annotations

from ..models import FinalizedSale, Sale
from .client import LaravelClient, unwrap_list


# Shift sales are fetched in one page; a shift rarely exceeds this
SHIFT_SALES_PAGE_SIZE = 1000


class SalesProvider:
    def __init__(self, client: LaravelClient):
        self.client = client

    def create(self, sale: FinalizedSale) -> int:
        """Record a finalized sale; returns the new transaction id."""
        body = self.client.post(
            "/api/pos/transactions",
            json=sale.to_payload(),
            headers={"Idempotency-Key": sale.idempotency_key},
        )
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            body = body["data"]
        return int(body["id"])

    def list(self, branch_id: int, shift_id: int) -> list[Sale]:
        body = self.client.get("/api/sales", params={
            "branch_id": branch_id,
            "shift_id": shift_id,
            "limit": SHIFT_SALES_PAGE_SIZE,
        })
        return [Sale.from_api(row) for row in unwrap_list(body)]

    def get(self, sale_id: int) -> Sale | None:
        body = self.client.get_or_none(f"/api/sales/{sale_id}")
        if not body:
            return None
        if isinstance(body.get("data"), dict):
            body = body["data"]
        return Sale.from_api(body)
