"""
Unit tests for the Treasury.
"""
import threading

import pytest
from tiles import EventBus, InMemoryWallet, Treasury
from tiles.errors import (
    InsufficientBalance,
    InsufficientLiquidity,
    InvalidAmount,
    NotOperator,
    TransferError,
)
from tiles.events import Funded, Withdrawn


@pytest.fixture
def treasury(wallet) -> Treasury:
    return Treasury("operator", wallet, EventBus())


class TestFunding:
    """Test the public funding surface."""

    def test_fund_increases_balance(self, treasury: Treasury) -> None:
        assert treasury.fund(500, funder="bob") == 500
        assert treasury.balance == 500

    def test_fund_emits_event(self, treasury: Treasury) -> None:
        treasury.fund(500, funder="bob")
        assert treasury.events.of_type(Funded) == [Funded("bob", 500, 500)]

    def test_fund_rejects_non_positive(self, treasury: Treasury) -> None:
        with pytest.raises(InvalidAmount):
            treasury.fund(0)

    def test_withdraw_rejects_non_positive(self, treasury: Treasury) -> None:
        treasury.fund(100)
        with pytest.raises(InvalidAmount):
            treasury.withdraw("operator", "vault", 0)
        assert treasury.balance == 100

    def test_withdraw_by_operator(self, treasury: Treasury, wallet: InMemoryWallet) -> None:
        treasury.fund(500)
        assert treasury.withdraw("operator", "vault", 200) == 300
        assert wallet.balance_of("vault") == 200
        assert treasury.events.of_type(Withdrawn) == [Withdrawn("vault", 200, 300)]

    def test_withdraw_requires_operator(self, treasury: Treasury) -> None:
        treasury.fund(500)
        with pytest.raises(NotOperator):
            treasury.withdraw("mallory", "mallory", 100)
        assert treasury.balance == 500

    def test_withdraw_more_than_balance(self, treasury: Treasury) -> None:
        treasury.fund(100)
        with pytest.raises(InsufficientBalance):
            treasury.withdraw("operator", "vault", 101)
        assert treasury.balance == 100

    def test_failed_withdraw_restores_balance(
        self, treasury: Treasury, wallet: InMemoryWallet
    ) -> None:
        treasury.fund(100)
        wallet.fail_transfers = True
        with pytest.raises(TransferError):
            treasury.withdraw("operator", "vault", 50)
        assert treasury.balance == 100
        assert treasury.events.of_type(Withdrawn) == []


class TestSolvency:
    """Test the stake acceptance check."""

    def test_accept_stake_credits_pool(self, treasury: Treasury) -> None:
        treasury.fund(200)
        treasury.accept_stake(100, 200)
        assert treasury.balance == 300

    def test_check_uses_balance_before_stake(self, treasury: Treasury) -> None:
        """150 in the pool cannot back a round needing 200, even with the stake."""
        treasury.fund(150)
        with pytest.raises(InsufficientLiquidity):
            treasury.accept_stake(100, 200)
        assert treasury.balance == 150

    def test_concurrent_accepts_serialize(self, treasury: Treasury) -> None:
        """Parallel stakes all succeed and every credit lands."""
        treasury.fund(200)
        threads = [
            threading.Thread(target=treasury.accept_stake, args=(10, 200))
            for _ in range(50)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert treasury.balance == 700

    def test_debit_and_credit(self, treasury: Treasury) -> None:
        treasury.fund(100)
        treasury.debit(40)
        assert treasury.balance == 60
        treasury.credit(40)
        assert treasury.balance == 100

    def test_debit_beyond_balance(self, treasury: Treasury) -> None:
        with pytest.raises(InsufficientLiquidity):
            treasury.debit(1)
