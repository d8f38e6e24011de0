"""Result Collector: one terminal entry per signature."""

import logging
import threading

from pydantic import BaseModel

from walletscope.domain.enums import AbandonReason
from walletscope.domain.models.transaction import Abandonment, TransactionRecord
from walletscope.exceptions import PipelineStateError

logger = logging.getLogger(__name__)

MAX_ATTEMPTS_CAUSE = "max attempts exceeded"


class ResultSet(BaseModel):
    """Final outcome of one pipeline run.

    `pending` is only non-empty when the run was cancelled before the queue
    drained. The three collections never share a signature.
    """

    address: str
    transactions: dict[str, TransactionRecord] = {}
    abandoned: dict[str, Abandonment] = {}
    pending: list[str] = []
    cancelled: bool = False

    @property
    def complete(self) -> bool:
        return not self.cancelled and not self.pending

    @property
    def signatures(self) -> set[str]:
        return set(self.transactions) | set(self.abandoned) | set(self.pending)

    def ordered(self) -> list[TransactionRecord]:
        """Transactions newest first; missing block times sort last, then by slot."""
        return sorted(
            self.transactions.values(),
            key=lambda r: (r.block_time is not None, r.block_time or 0, r.slot),
            reverse=True,
        )


class ResultCollector:
    """Thread-safe, idempotent accumulator for transaction records and abandonments."""

    def __init__(self, address: str) -> None:
        self._address = address
        self._lock = threading.Lock()
        self._transactions: dict[str, TransactionRecord] = {}
        self._abandoned: dict[str, Abandonment] = {}
        self._pending: list[str] | None = None
        self._cancelled = False

    def contains(self, signature: str) -> bool:
        with self._lock:
            return signature in self._transactions or signature in self._abandoned

    def record(self, signature: str, record: TransactionRecord) -> bool:
        """Store a fetched transaction. Returns False if the signature already has an entry."""
        with self._lock:
            self._check_open()
            if signature in self._transactions or signature in self._abandoned:
                logger.debug("Ignoring duplicate result for %s", signature)
                return False
            self._transactions[signature] = record
            return True

    def abandon(self, signature: str, reason: AbandonReason, cause: str, attempts: int) -> bool:
        """Store an abandonment. Returns False if the signature already has an entry."""
        with self._lock:
            self._check_open()
            if signature in self._transactions or signature in self._abandoned:
                logger.debug("Ignoring duplicate abandonment for %s", signature)
                return False
            self._abandoned[signature] = Abandonment(
                signature=signature, reason=reason, cause=cause, attempts=attempts
            )
            return True

    def seal(self, pending: list[str] | None = None, cancelled: bool = False) -> None:
        """Close the collector. `pending` lists signatures the run never finished."""
        with self._lock:
            self._check_open()
            self._pending = [s for s in (pending or []) if s not in self._transactions and s not in self._abandoned]
            self._cancelled = cancelled

    def drain(self) -> ResultSet:
        with self._lock:
            if self._pending is None:
                raise PipelineStateError("ResultSet requested before the pipeline finished")
            return ResultSet(
                address=self._address,
                transactions=dict(self._transactions),
                abandoned=dict(self._abandoned),
                pending=list(self._pending),
                cancelled=self._cancelled,
            )

    def _check_open(self) -> None:
        if self._pending is not None:
            raise PipelineStateError("collector is sealed")

    def __len__(self) -> int:
        with self._lock:
            return len(self._transactions) + len(self._abandoned)
