"""
conftest.py - Shared pytest fixtures for peerlend tests

Provides common fixtures used across unit, functional and conformance tests:
- Funds ledgers (empty, with a funded owner)
- Lending pools (paused, open, with pending proposals)
- A funding helper that issues money from the system wallet
"""

import pytest
from datetime import datetime, timedelta

from peerlend import (
    Ledger, LendingPool, LendingTerms, Move,
    ExecuteResult, SYSTEM_WALLET,
    build_transaction,
)


T0 = datetime(2025, 1, 1)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def issue(ledger: Ledger, wallet: str, amount: int) -> None:
    """Issue money to a wallet from the system wallet, registering it if needed."""
    if not ledger.is_registered(wallet):
        ledger.register_wallet(wallet)
    result = ledger.execute(build_transaction(ledger, [
        Move(amount, SYSTEM_WALLET, wallet, "initial_balance")
    ]))
    assert result is ExecuteResult.APPLIED


def standard_terms() -> LendingTerms:
    """500 max principal, 5% interest, 30 day payback."""
    return LendingTerms(
        max_principal=500,
        interest_rate_x1000=5_000,
        payback_period=timedelta(days=30),
    )


# =============================================================================
# LEDGER FIXTURES
# =============================================================================

@pytest.fixture
def fund():
    """The issue() helper as a fixture."""
    return issue


@pytest.fixture
def empty_ledger():
    """Fresh ledger with only the system wallet."""
    return Ledger("test", T0, test_mode=True)


@pytest.fixture
def basic_ledger():
    """Ledger with alice holding 1,000 and bob registered."""
    ledger = Ledger("test", T0, test_mode=True)
    ledger.register_wallet("alice")
    ledger.register_wallet("bob")
    issue(ledger, "alice", 1_000)
    return ledger


# =============================================================================
# POOL FIXTURES
# =============================================================================

@pytest.fixture
def pool():
    """
    Paused pool owned by treasury with standard terms.

    treasury is issued 100,000 and deposits 10,000 into the pool.
    """
    ledger = Ledger("lending", T0, test_mode=True)
    pool = LendingPool(ledger, owner="treasury", terms=standard_terms())
    issue(ledger, "treasury", 100_000)
    pool.deposit("treasury", 10_000)
    return pool


@pytest.fixture
def open_pool(pool):
    """The funded pool, opened for proposals."""
    pool.pause_or_open("treasury")
    return pool


@pytest.fixture
def proposals_pool(open_pool):
    """Open pool with alice (100), bob (200) and carol (300) pending, in that order."""
    open_pool.propose_loan("alice", 100)
    open_pool.propose_loan("bob", 200)
    open_pool.propose_loan("carol", 300)
    return open_pool
