"""
Record Journal

Collects records emitted by ledger operations and publishes them only when
the operation that produced them commits.

Records are buffered in frames that mirror state transactions: ``begin()``
opens a frame, ``commit()`` folds it into the enclosing frame (or publishes
it when it is the outermost one), ``rollback()`` discards it. An aborted
operation therefore never leaks a record.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Union

from .models import OfferRecord, OwnershipRecord

logger = logging.getLogger(__name__)

Record = Union[OwnershipRecord, OfferRecord]
Subscriber = Callable[[Record], None]


class RecordJournal:
    """
    Buffered, subscribable record stream.

    Usage:
        journal = RecordJournal()
        journal.subscribe(lambda r: print(r.kind))

        journal.begin()
        journal.emit(OwnershipRecord(token_id=1, from_account=a, to_account=b))
        journal.commit()   # published + subscribers notified

        journal.records(kind="Transfer")
    """

    def __init__(self) -> None:
        self._published: list[Record] = []
        self._frames: list[list[Record]] = []
        self._subscribers: list[Subscriber] = []

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    @property
    def depth(self) -> int:
        return len(self._frames)

    def begin(self) -> None:
        self._frames.append([])

    def emit(self, record: Record) -> None:
        """Buffer a record in the current frame (publish at once if none is open)."""
        if self._frames:
            self._frames[-1].append(record)
        else:
            self._publish([record])

    def commit(self) -> None:
        if not self._frames:
            raise RuntimeError("commit() without an open frame")
        frame = self._frames.pop()
        if self._frames:
            self._frames[-1].extend(frame)
        else:
            self._publish(frame)

    def rollback(self) -> None:
        if not self._frames:
            raise RuntimeError("rollback() without an open frame")
        discarded = self._frames.pop()
        if discarded:
            logger.debug("Discarded %d buffered record(s)", len(discarded))

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register an observer; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, records: list[Record]) -> None:
        for record in records:
            sequenced = record.model_copy(update={"sequence": len(self._published) + 1})
            self._published.append(sequenced)
            for callback in list(self._subscribers):
                # Runs after commit; observer failures are only logged.
                try:
                    callback(sequenced)
                except Exception:
                    logger.exception("Record subscriber failed on %s #%d", sequenced.kind, sequenced.sequence)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def records(
        self,
        kind: Optional[str] = None,
        token_id: Optional[int] = None,
    ) -> list[Record]:
        """Published records, optionally filtered by kind and token."""
        return [
            r for r in self._published
            if (kind is None or r.kind == kind)
            and (token_id is None or r.token_id == token_id)
        ]

    def __len__(self) -> int:
        return len(self._published)

    def restore(self, records: list[Record]) -> None:
        """Replace the published stream with previously persisted records."""
        if self._frames:
            raise RuntimeError("Cannot restore while a frame is open")
        self._published = list(records)

    def clear(self) -> None:
        self._published.clear()
        self._frames.clear()

    def to_dict_list(self) -> list[dict[str, Any]]:
        """Convert all published records to JSON-serializable dicts."""
        return [r.model_dump(mode="json", exclude_none=True) for r in self._published]
