"""
Payout wallet boundary.

The engine and treasury move funds out through a PayoutWallet. The
in-memory implementation keeps per-account totals and can be switched
into a failing mode to exercise transfer rollback.
"""
import threading
from collections import defaultdict
from typing import Dict, Protocol

from .errors import TransferError


class PayoutWallet(Protocol):
    """Anything that can send funds to an account."""

    def transfer(self, to: str, amount: int) -> None:
        ...


class InMemoryWallet:
    """Wallet that records credited amounts per account."""

    def __init__(self) -> None:
        self.balances: Dict[str, int] = defaultdict(int)
        self.fail_transfers = False
        self.on_transfer = None
        self._lock = threading.Lock()

    def transfer(self, to: str, amount: int) -> None:
        """
        Credit amount to an account.

        If on_transfer is set it is called before the credit with
        (to, amount); tests use it to attempt re-entrant calls.

        Raises:
            TransferError: fail_transfers is set.
        """
        if self.fail_transfers:
            raise TransferError(f"Transfer of {amount} to {to} refused")
        if self.on_transfer is not None:
            self.on_transfer(to, amount)
        with self._lock:
            self.balances[to] += amount

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self.balances.get(account, 0)
