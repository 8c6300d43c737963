# Overview: Submit guards for provider calls; prevents duplicate dispatch of one user action.

from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager

from ..errors import SaleInProgress


class ProcessingGuard:
    """
    "Is processing" flag for one kind of submission (payment, shift start/end).

    Checked and set atomically before dispatch; a second submission while
    the first is in flight is rejected instead of queued. It does not block
    unrelated operations on the session.
    """

    def __init__(self, error_cls: type[Exception] = SaleInProgress):
        self._lock = threading.Lock()
        self._busy = False
        self._error_cls = error_cls

    @property
    def busy(self) -> bool:
        return self._busy

    @contextmanager
    def hold(self):
        with self._lock:
            if self._busy:
                raise self._error_cls()
            self._busy = True
        try:
            yield
        finally:
            with self._lock:
                self._busy = False


def new_idempotency_key() -> str:
    """
    Client request id for one finalize attempt.

    The back office de-duplicates on it, so one attempt is recorded at most
    once even if the request reaches it twice.
    """
    return uuid.uuid4().hex
