"""Per-holder, append-only ledger of locked batches with strict FIFO claims."""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field, replace

from liquid_vault.errors import (
    ArrayLengthMismatch,
    BatchInsertionClosed,
    NothingToClaim,
    StillLocked,
    ZeroAddress,
    ZeroAmount,
)
from liquid_vault.models import LockedBatch


@dataclass
class HolderQueue:
    """
    Batches of a single holder in insertion (= claim) order.

    Invariant: every batch before `cursor` is claimed, every batch from `cursor` on is not.
    """

    batches: list[LockedBatch] = field(default_factory=list)
    cursor: int = 0


class LockedBatchLedger:
    """
    Holder-scoped append-only log of locked batches.

    A holder can never claim a newer batch while an older one is still locked, even if
    the newer one matured first (e.g. after a recalibration shortened lock times). This
    keeps claims strictly FIFO and is intentional.
    """

    def __init__(self) -> None:
        self._queues: dict[str, HolderQueue] = {}
        self._insertion_finished = False

    def _queue(self, holder: str) -> HolderQueue:
        queue = self._queues.get(holder)
        if queue is None:
            queue = self._queues[holder] = HolderQueue()
        return queue

    def append(self, holder: str, amount: int, unlock_timestamp: int) -> int:
        """Append an unclaimed batch; returns its index in the holder's queue."""
        if not holder:
            raise ZeroAddress("batch holder is zero address")
        if amount <= 0:
            raise ZeroAmount("LiquidVault: batch amount must be > 0")
        queue = self._queue(holder)
        queue.batches.append(LockedBatch(holder=holder, amount=amount, unlock_timestamp=unlock_timestamp))
        return len(queue.batches) - 1

    def length(self, holder: str) -> int:
        """Total batches ever appended for holder, claimed or not."""
        queue = self._queues.get(holder)
        return len(queue.batches) if queue else 0

    def cursor(self, holder: str) -> int:
        queue = self._queues.get(holder)
        return queue.cursor if queue else 0

    def batch(self, holder: str, index: int) -> LockedBatch:
        """Copy of the batch at `index` (mutating it does not touch the ledger)."""
        queue = self._queues.get(holder)
        if queue is None or not 0 <= index < len(queue.batches):
            raise IndexError(f"no batch {index} for holder {holder}")
        return replace(queue.batches[index])

    def batches(self, holder: str) -> list[LockedBatch]:
        queue = self._queues.get(holder)
        return [replace(b) for b in queue.batches] if queue else []

    def holders(self) -> Iterator[str]:
        return iter(self._queues)

    def unclaimed_total(self, holder: str | None = None) -> int:
        """Sum of unclaimed batch amounts, for one holder or across all."""
        if holder is not None:
            queue = self._queues.get(holder)
            queues = [queue] if queue else []
        else:
            queues = list(self._queues.values())
        return sum(b.amount for q in queues for b in q.batches[q.cursor :])

    def peek_claimable(self, holder: str, now: int) -> tuple[int, LockedBatch]:
        """Index and copy of the batch at the holder's cursor, if it has matured."""
        queue = self._queues.get(holder)
        if queue is None or queue.cursor >= len(queue.batches):
            raise NothingToClaim("LiquidVault: No locked LP.")
        head = queue.batches[queue.cursor]
        if now < head.unlock_timestamp:
            raise StillLocked(f"LiquidVault: LP still locked until {head.unlock_timestamp}.")
        return queue.cursor, replace(head)

    def advance_claim(self, holder: str) -> LockedBatch:
        """Mark the batch at the cursor claimed and move past it. Call after peek_claimable."""
        queue = self._queues.get(holder)
        if queue is None or queue.cursor >= len(queue.batches):
            raise NothingToClaim("LiquidVault: No locked LP.")
        head = queue.batches[queue.cursor]
        head.claimed = True
        queue.cursor += 1
        return replace(head)

    def rewind_claim(self, holder: str) -> None:
        """Undo the last advance_claim for holder (rollback of a failed claim)."""
        queue = self._queues[holder]
        if queue.cursor == 0:
            raise ValueError(f"nothing to rewind for holder {holder}")
        queue.cursor -= 1
        queue.batches[queue.cursor].claimed = False

    @property
    def insertion_finished(self) -> bool:
        return self._insertion_finished

    def finish_batch_insertion(self) -> None:
        """One-way latch: bulk insertion can never be used again."""
        self._insertion_finished = True

    def bulk_insert(
        self,
        holders: Sequence[str],
        amounts: Sequence[int],
        timestamps: Sequence[int],
    ) -> list[LockedBatch]:
        """Append one batch per (holder, amount, timestamp); all-or-nothing."""
        if self._insertion_finished:
            raise BatchInsertionClosed("LiquidVault: Manual batch insertion is no longer possible.")
        if not len(holders) == len(amounts) == len(timestamps):
            raise ArrayLengthMismatch(
                f"LiquidVault: array lengths differ: holders={len(holders)} "
                f"amounts={len(amounts)} timestamps={len(timestamps)}"
            )
        for holder, amount in zip(holders, amounts):
            if not holder:
                raise ZeroAddress("batch holder is zero address")
            if amount <= 0:
                raise ZeroAmount(f"LiquidVault: batch amount must be > 0 (holder {holder})")

        inserted = []
        for holder, amount, timestamp in zip(holders, amounts, timestamps):
            index = self.append(holder, amount, timestamp)
            inserted.append(self.batch(holder, index))
        return inserted
