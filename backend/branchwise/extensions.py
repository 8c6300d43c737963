# Overview: Flask extension instance wiring the back office client and the in-memory session registry.

from __future__ import annotations

from flask import Flask, current_app

from .api import (
    BankAccountProvider,
    BranchProvider,
    CatalogProvider,
    CustomerProvider,
    LaravelClient,
    SalesProvider,
    ShiftProvider,
)
from .services.session_service import Providers, SaleSession, SessionRegistry, TerminalContext


class PosTerminal:
    """
    Flask extension owning the Laravel client and the sale sessions.

    Follows the usual init_app pattern so the app factory (and tests)
    decide the configuration.
    """

    def __init__(self, app: Flask | None = None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        client = LaravelClient(
            base_url=app.config["POS_API_URL"],
            token=app.config.get("POS_API_TOKEN"),
            timeout=app.config.get("POS_API_TIMEOUT", 30.0),
            transport=app.config.get("POS_API_TRANSPORT"),
        )
        app.extensions["pos_terminal"] = {
            "client": client,
            "sessions": SessionRegistry(),
        }

    @property
    def _state(self) -> dict:
        return current_app.extensions["pos_terminal"]

    @property
    def client(self) -> LaravelClient:
        return self._state["client"]

    @property
    def sessions(self) -> SessionRegistry:
        return self._state["sessions"]

    def providers(self) -> Providers:
        client = self.client
        return Providers(
            catalog=CatalogProvider(client),
            customers=CustomerProvider(client),
            shifts=ShiftProvider(client),
            sales=SalesProvider(client),
            bank_accounts=BankAccountProvider(client),
        )

    def session_for(self, user_id: int, branch_id: int) -> SaleSession:
        """Existing session for the pair, or a new one loaded from the back office."""
        credit_requires_due_date = bool(current_app.config.get("CREDIT_REQUIRES_DUE_DATE"))

        def build() -> SaleSession:
            branch = BranchProvider(self.client).get(branch_id)
            context = TerminalContext.for_branch(branch, user_id, credit_requires_due_date)
            session = SaleSession(context, self.providers())
            session.load()
            current_app.logger.info(
                "Sale session loaded for user %s at branch %s (shift: %s)",
                user_id, branch_id, session.shift.state,
            )
            return session

        return self.sessions.get_or_create(user_id, branch_id, build)


terminal = PosTerminal()
