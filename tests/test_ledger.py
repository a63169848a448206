import pytest

from liquid_vault.errors import (
    ArrayLengthMismatch,
    BatchInsertionClosed,
    NothingToClaim,
    StillLocked,
    ZeroAddress,
    ZeroAmount,
)
from liquid_vault.ledger import LockedBatchLedger
from liquid_vault.validation import validate_ledger_invariants

ALICE = "0xa11ce"
BOB = "0xb0b"
T = 1_000_000


def test_claims_follow_append_order():
    ledger = LockedBatchLedger()
    ledger.append(ALICE, 100, T)
    ledger.append(ALICE, 200, T + 50)

    # Both matured; the older batch comes out first.
    index, batch = ledger.peek_claimable(ALICE, T + 50)
    assert (index, batch.amount) == (0, 100)
    ledger.advance_claim(ALICE)

    index, batch = ledger.peek_claimable(ALICE, T + 50)
    assert (index, batch.amount) == (1, 200)


def test_newer_matured_batch_waits_behind_older_locked_one():
    ledger = LockedBatchLedger()
    ledger.append(ALICE, 100, T + 500)
    ledger.append(ALICE, 200, T + 100)
    with pytest.raises(StillLocked):
        ledger.peek_claimable(ALICE, T + 200)
    assert ledger.cursor(ALICE) == 0


def test_peek_is_read_only():
    ledger = LockedBatchLedger()
    ledger.append(ALICE, 100, T)
    ledger.peek_claimable(ALICE, T)
    _, batch = ledger.peek_claimable(ALICE, T)
    batch.claimed = True
    assert ledger.cursor(ALICE) == 0
    assert not ledger.batch(ALICE, 0).claimed


@pytest.mark.parametrize("now", [T - 1, T - 86_400])
def test_still_locked_before_unlock_timestamp(now):
    ledger = LockedBatchLedger()
    ledger.append(ALICE, 100, T)
    with pytest.raises(StillLocked):
        ledger.peek_claimable(ALICE, now)


def test_nothing_to_claim():
    ledger = LockedBatchLedger()
    with pytest.raises(NothingToClaim):
        ledger.peek_claimable(ALICE, T)
    ledger.append(ALICE, 100, T)
    ledger.peek_claimable(ALICE, T)
    ledger.advance_claim(ALICE)
    with pytest.raises(NothingToClaim):
        ledger.peek_claimable(ALICE, T)
    assert ledger.length(ALICE) == 1


def test_holders_are_isolated():
    ledger = LockedBatchLedger()
    ledger.append(ALICE, 100, T)
    ledger.append(BOB, 300, T)
    ledger.advance_claim(ALICE)
    assert ledger.cursor(BOB) == 0
    assert ledger.unclaimed_total(BOB) == 300
    assert ledger.unclaimed_total(ALICE) == 0
    assert ledger.unclaimed_total() == 300


@pytest.mark.parametrize(("holder", "amount", "error"), [("", 1, ZeroAddress), (ALICE, 0, ZeroAmount)])
def test_append_rejects_invalid_batches(holder, amount, error):
    ledger = LockedBatchLedger()
    with pytest.raises(error):
        ledger.append(holder, amount, T)


def test_rewind_restores_cursor_and_claimed_flag():
    ledger = LockedBatchLedger()
    ledger.append(ALICE, 100, T)
    ledger.advance_claim(ALICE)
    assert ledger.batch(ALICE, 0).claimed
    ledger.rewind_claim(ALICE)
    assert ledger.cursor(ALICE) == 0
    assert not ledger.batch(ALICE, 0).claimed
    with pytest.raises(ValueError):
        ledger.rewind_claim(ALICE)


def test_bulk_insert_appends_one_batch_per_tuple():
    ledger = LockedBatchLedger()
    inserted = ledger.bulk_insert([ALICE, BOB, ALICE], [10, 20, 30], [T, T + 1, T + 2])
    assert [b.amount for b in inserted] == [10, 20, 30]
    assert ledger.length(ALICE) == 2
    assert ledger.length(BOB) == 1
    assert ledger.batch(ALICE, 1).unlock_timestamp == T + 2


def test_bulk_insert_after_finish_is_rejected_and_ledger_unchanged():
    ledger = LockedBatchLedger()
    ledger.bulk_insert([ALICE], [10], [T])
    ledger.finish_batch_insertion()
    assert ledger.insertion_finished
    with pytest.raises(BatchInsertionClosed):
        ledger.bulk_insert([ALICE], [10], [T])
    assert ledger.length(ALICE) == 1


@pytest.mark.parametrize(
    ("holders", "amounts", "timestamps", "error"),
    [
        ([ALICE, BOB], [10], [T, T], ArrayLengthMismatch),
        ([ALICE, BOB], [10, 20], [T], ArrayLengthMismatch),
        ([ALICE, BOB], [10, 0], [T, T], ZeroAmount),
        ([ALICE, ""], [10, 20], [T, T], ZeroAddress),
    ],
)
def test_bulk_insert_is_all_or_nothing(holders, amounts, timestamps, error):
    ledger = LockedBatchLedger()
    with pytest.raises(error):
        ledger.bulk_insert(holders, amounts, timestamps)
    assert ledger.length(ALICE) == 0
    assert ledger.length(BOB) == 0


def test_ledger_invariants_hold_through_claims():
    ledger = LockedBatchLedger()
    ledger.bulk_insert([ALICE, ALICE, BOB], [10, 20, 30], [T, T, T])
    ledger.advance_claim(ALICE)
    assert validate_ledger_invariants(ledger, pool_balance=50) == []
    assert validate_ledger_invariants(ledger, pool_balance=49) != []
    with pytest.raises(ValueError):
        validate_ledger_invariants(ledger, pool_balance=49, warn_only=False)
