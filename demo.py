#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: Learn the Lending Pool Step by Step

This is a pedagogical demonstration of how the peer lending pool works.
Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Setup       - The funds ledger, the pool, funding and opening it
  4-6:  Lifecycle   - Proposals, approval, early repayment and its discount
  7-9:  Owner Tools - Rejections, pausing, reminders, new terms, withdrawal

Run:
    python demo.py                    # Interactive mode (press Enter for each step)
    python demo.py --quick            # Run all steps without pausing
    python demo.py --config pool.yml  # Load pool identity and terms from YAML
"""

from datetime import timedelta
import sys

from peerlend import (
    Ledger, LendingPool, Move, SYSTEM_WALLET,
    EventType, LendingError, PoolSettings, MAX_INTEREST_RATE_X1000,
    build_transaction, load_settings, setup_logging,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

QUICK_MODE = "--quick" in sys.argv


def _config_path():
    if "--config" in sys.argv:
        position = sys.argv.index("--config") + 1
        if position < len(sys.argv):
            return sys.argv[position]
    return None


SETTINGS: PoolSettings = load_settings(_config_path())


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    """Print a step header with learning objective."""
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def show_balances(ledger: Ledger):
    for wallet, balance in ledger.get_balances().items():
        print(f"  {wallet:<12} {balance:>10,}")


# ============================================================================
# PHASE 1: SETUP (Steps 1-3)
# ============================================================================

def step_01_create_pool():
    """Create the funds ledger and the pool on top of it."""
    step_header(1, "The Ledger and the Pool",
        "See that the pool keeps its money in an ordinary ledger wallet.")

    ledger = Ledger("tutorial")
    pool = LendingPool.from_settings(ledger, SETTINGS)

    print(">>> pool = LendingPool.from_settings(ledger, settings)")
    print(f"Owner:           {pool.owner}")
    print(f"Pool wallet:     {pool.wallet}")
    print(f"State:           {pool.contract_state.value}")
    print(f"Max principal:   {pool.terms.max_principal:,}")
    print(f"Interest x1000:  {pool.terms.interest_rate_x1000:,}")
    print(f"Payback period:  {pool.terms.payback_period}")

    section_header("Key Insight")
    print("""
    A new pool starts PAUSED. Nobody can propose until the owner opens it,
    and the terms can only be changed while it is paused.
    """)
    return pool


def step_02_fund(pool: LendingPool):
    """Issue money and deposit it into the pool."""
    step_header(2, "Funding",
        "Money enters through the system wallet and is deposited by the owner.")

    ledger = pool.ledger
    moves = [Move(20_000, SYSTEM_WALLET, pool.owner, "initial_balance")]
    for borrower in ("alice", "bob", "carol"):
        ledger.register_wallet(borrower)
        moves.append(Move(1_000, SYSTEM_WALLET, borrower, "initial_balance"))
    ledger.execute(build_transaction(ledger, moves))

    print(f">>> pool.deposit({pool.owner!r}, 10_000)")
    pool.deposit(pool.owner, 10_000)
    show_balances(ledger)
    print(f"\nSum of all balances: {ledger.total_supply()} (always zero)")
    return pool


def step_03_open(pool: LendingPool):
    step_header(3, "Opening the Pool", "Only the owner can toggle the pool.")

    try:
        pool.pause_or_open("alice")
    except LendingError as e:
        print(f"alice tries to open it:  {type(e).__name__}: {e}")

    print(f"owner opens it:          {pool.pause_or_open(pool.owner).value}")
    return pool


# ============================================================================
# PHASE 2: LIFECYCLE (Steps 4-6)
# ============================================================================

def step_04_propose(pool: LendingPool):
    step_header(4, "Proposals",
        "Proposals queue up in the pending index in arrival order.")

    for borrower, amount in (("alice", 100), ("bob", 250), ("carol", 50)):
        pool.propose_loan(borrower, amount)
        print(f">>> pool.propose_loan({borrower!r}, {amount})")

    try:
        pool.propose_loan("bob", pool.terms.max_principal + 1)
    except LendingError as e:
        print(f"\nbob asks for too much:   {type(e).__name__}")

    print(f"Pending: {list(pool.pending_borrowers())}")
    return pool


def step_05_approve(pool: LendingPool):
    step_header(5, "Approval",
        "Approving pays out the principal and fixes the amount due.")

    record = pool.approve_loan(pool.owner, "alice")
    print(f"alice owes {record.amount_due} by {record.end_time}")
    print(f"Pending after approval: {list(pool.pending_borrowers())}")

    section_header("Swap Removal")
    print("""
    alice sat at position 0. The last proposal (carol) moved into her slot,
    so removal never shifts the whole queue.
    """)
    return pool


def step_06_early_repayment(pool: LendingPool):
    step_header(6, "Early Repayment",
        "Paying back before the deadline discounts the next loan.")

    pool.ledger.advance_time(pool.now + timedelta(days=10))
    due = pool.get_loan("alice").amount_due
    record = pool.repay("alice", due)
    print(f"alice repaid {due}; early_pay={record.early_pay}")

    pool.propose_loan("alice", 100)
    print(f"Her next 100 would cost {pool.calculate_amount_due(100, record.early_pay)} "
          f"instead of {pool.calculate_amount_due(100)}")
    return pool


# ============================================================================
# PHASE 3: OWNER TOOLS (Steps 7-9)
# ============================================================================

def step_07_reject_and_pause(pool: LendingPool):
    step_header(7, "Rejection and Pausing",
        "Pausing the pool rejects everything still pending.")

    pool.approve_loan(pool.owner, "bob")
    pool.reject_loan(pool.owner, "carol")
    print(f"Pending before pause: {list(pool.pending_borrowers())}")
    pool.pause_or_open(pool.owner)
    print(f"Pending after pause:  {list(pool.pending_borrowers())}")
    print(f"bob's active loan survives: {pool.get_loan('bob').state.value}")
    return pool


def step_08_reminders(pool: LendingPool):
    step_header(8, "Reminders", "Overdue borrowers can be reminded.")

    pool.ledger.advance_time(pool.now + pool.terms.payback_period + timedelta(days=1))
    print(f"Overdue: {pool.remind_overdue(pool.owner)}")
    due = pool.get_loan("bob").amount_due
    pool.repay("bob", due)
    print(f"bob repaid {due} late; next loan is not discounted")
    return pool


def step_09_terms_and_withdraw(pool: LendingPool):
    step_header(9, "New Terms and Withdrawal",
        "Change the terms while paused, then sweep the pool.")

    pool.update_interest(pool.owner, min(pool.terms.interest_rate_x1000 * 2, MAX_INTEREST_RATE_X1000))
    print(f"New interest x1000: {pool.terms.interest_rate_x1000}")
    print(f"Withdrawn: {pool.withdraw(pool.owner):,}")

    section_header("Event Trail")
    for event in pool.events.history:
        print(f"  {event.timestamp:%Y-%m-%d}  {event.event_type.value:<14} "
              f"{event.borrower:<8} {event.amount}")

    section_header("Final Balances")
    show_balances(pool.ledger)
    check = pool.ledger.verify_double_entry()
    print(f"\nConservation holds: {check['valid']}")
    return pool


def main():
    """Run the complete tutorial."""
    setup_logging(SETTINGS.log_level)

    print("=" * 70)
    print("       PEERLEND - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")
    wait_for_enter()

    pool = step_01_create_pool()
    for step in (
        step_02_fund, step_03_open,
        step_04_propose, step_05_approve, step_06_early_repayment,
        step_07_reject_and_pause, step_08_reminders, step_09_terms_and_withdraw,
    ):
        wait_for_enter()
        pool = step(pool)

    rejected = len(pool.events.of_type(EventType.LOAN_REJECTED))
    print(f"\nDone. {len(pool.events.history)} events, {rejected} rejections.")
    print("Run tests: pytest tests/")


if __name__ == "__main__":
    main()
