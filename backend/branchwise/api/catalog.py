from __future__ import annotations

from ..models import Product, ProductPage
from .client import LaravelClient, unwrap_list


class CatalogProvider:
    """Product search and lookup, scoped to a branch."""

    def __init__(self, client: LaravelClient):
        self.client = client

    def search(self, branch_id: int, query: str | None, page: int, page_size: int) -> ProductPage:
        body = self.client.get("/api/products", params={
            "branch_id": branch_id,
            "search": query,
            "page": page,
            "limit": page_size,
        })
        items = [Product.from_api(row) for row in unwrap_list(body)]
        total = int(body.get("total", len(items))) if isinstance(body, dict) else len(items)
        return ProductPage(items=items, total=total, page=page, page_size=page_size)

    def get(self, product_id: int) -> Product | None:
        body = self.client.get_or_none(f"/api/products/{product_id}")
        if not body:
            return None
        if "data" in body and isinstance(body["data"], dict):
            body = body["data"]
        return Product.from_api(body)
