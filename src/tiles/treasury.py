"""
Treasury module for the tiles game.

Holds the pooled balance every round is paid from. All balance changes
go through one lock so solvency checks never race each other.
"""
import logging
import threading
from typing import Optional

from .errors import (
    InsufficientBalance,
    InsufficientLiquidity,
    InvalidAmount,
    NotOperator,
    TransferError,
)
from .events import EventBus, Funded, Withdrawn
from .fixed_point import checked_add, checked_sub, format_wad
from .wallet import PayoutWallet

logger = logging.getLogger("tiles.treasury")


# ============================================================================
# Treasury
# ============================================================================

class Treasury:
    """
    Pooled balance backing all rounds.

    Losing stakes stay in the pool and payouts are debited from it; there
    is no separate house account.
    """

    def __init__(
        self,
        operator: str,
        wallet: PayoutWallet,
        events: Optional[EventBus] = None,
        balance: int = 0,
    ) -> None:
        """
        Initialize the treasury.

        Args:
            operator: Identity allowed to withdraw.
            wallet: Transfer boundary used for withdrawals.
            events: Bus for Funded/Withdrawn events.
            balance: Opening balance.
        """
        self.operator = operator
        self.wallet = wallet
        self.events = events or EventBus()
        self._balance = checked_add(balance, 0)
        self._lock = threading.Lock()

    @property
    def balance(self) -> int:
        with self._lock:
            return self._balance

    # ========================================================================
    # Funding Surface
    # ========================================================================

    def fund(self, amount: int, funder: str = "anonymous") -> int:
        """
        Add funds to the pool. Anyone may fund.

        Returns:
            New balance.
        """
        if amount <= 0:
            raise InvalidAmount(f"Funding amount must be positive, got {amount}")
        with self._lock:
            self._balance = checked_add(self._balance, amount)
            balance = self._balance
        logger.info(f"Funded {format_wad(amount)} by {funder}")
        self.events.publish(Funded(funder=funder, amount=amount, balance=balance))
        return balance

    def withdraw(self, caller: str, to: str, amount: int) -> int:
        """
        Withdraw funds to an account. Operator only.

        The balance is debited before the transfer and restored if the
        transfer fails.

        Returns:
            New balance.

        Raises:
            NotOperator: caller is not the operator.
            InsufficientBalance: amount exceeds the balance.
            TransferError: The wallet rejected the transfer.
        """
        if caller != self.operator:
            raise NotOperator(f"{caller} is not the treasury operator")
        if amount <= 0:
            raise InvalidAmount(f"Withdrawal must be positive, got {amount}")
        self.debit(amount, InsufficientBalance)
        try:
            self.wallet.transfer(to, amount)
        except Exception as exc:
            self.credit(amount)
            logger.warning(f"Withdrawal of {format_wad(amount)} to {to} rolled back: {exc}")
            if isinstance(exc, TransferError):
                raise
            raise TransferError(f"Withdrawal to {to} failed: {exc}") from exc
        balance = self.balance
        logger.info(f"Withdrew {format_wad(amount)} to {to}")
        self.events.publish(Withdrawn(to=to, amount=amount, balance=balance))
        return balance

    # ========================================================================
    # Engine Accounting
    # ========================================================================

    def accept_stake(self, stake: int, required: int) -> None:
        """
        Check solvency for a new round and credit its stake.

        Both happen in one critical section. The check runs against the
        balance before the stake is added.

        Args:
            stake: Stake paid into the pool.
            required: Worst-case payout the pool must already cover.

        Raises:
            InsufficientLiquidity: Balance is below required.
        """
        with self._lock:
            if self._balance < required:
                raise InsufficientLiquidity(
                    f"Pool holds {self._balance}, round needs {required}"
                )
            self._balance = checked_add(self._balance, stake)

    def debit(self, amount: int, error=InsufficientLiquidity) -> None:
        """Take amount out of the pool, raising error if it is not there."""
        with self._lock:
            if amount > self._balance:
                raise error(f"Pool holds {self._balance}, cannot pay {amount}")
            self._balance = checked_sub(self._balance, amount)

    def credit(self, amount: int) -> None:
        """Put amount back into the pool."""
        with self._lock:
            self._balance = checked_add(self._balance, amount)
