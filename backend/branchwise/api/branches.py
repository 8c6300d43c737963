from __future__ import annotations

from ..errors import ProviderError
from ..models import BankAccount, Branch
from .client import LaravelClient, unwrap_list


class BranchProvider:
    def __init__(self, client: LaravelClient):
        self.client = client

    def get(self, branch_id: int) -> Branch:
        body = self.client.get_or_none(f"/api/branches/{branch_id}")
        if not body:
            raise ProviderError(f"Branch {branch_id} not found", provider_status=404)
        if isinstance(body.get("data"), dict):
            body = body["data"]
        return Branch.from_api(body)


class BankAccountProvider:
    def __init__(self, client: LaravelClient):
        self.client = client

    def list(self, branch_id: int) -> list[BankAccount]:
        body = self.client.get("/api/bank-accounts", params={"branch_id": branch_id})
        return [BankAccount.from_api(row) for row in unwrap_list(body)]
