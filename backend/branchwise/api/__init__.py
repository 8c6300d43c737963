# Overview: Back office providers consumed by the sale session as opaque JSON-over-HTTP APIs.

from .client import LaravelClient, unwrap_list
from .catalog import CatalogProvider
from .customers import CustomerProvider
from .shifts import ShiftProvider
from .sales import SalesProvider
from .branches import BranchProvider, BankAccountProvider

__all__ = [
    "LaravelClient",
    "CatalogProvider",
    "CustomerProvider",
    "ShiftProvider",
    "SalesProvider",
    "BranchProvider",
    "BankAccountProvider",
    "unwrap_list",
]
