"""trade_replay/ingest/worker.py

Sender worker - owns one QuestDB sender and sends a fixed quota of trade
events by cycling through the shared RowStore.

Lifecycle:
    IDLE -> CONNECTED -> SENDING -> FLUSHING -> DONE
    any state after IDLE -> FAILED

The sender is closed on every exit path before the worker reports its result.
"""

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from questdb.ingress import TimestampNanos

from trade_replay.core.exceptions import WorkerError, WorkerInterrupted
from trade_replay.core.logger import logger
from trade_replay.data.row_store import RowStore, TradeRow
from trade_replay.ingest.connection_config import ConnectionConfig

TABLE_NAME = "trades"


class WorkerState(str, Enum):
    IDLE = "IDLE"
    CONNECTED = "CONNECTED"
    SENDING = "SENDING"
    FLUSHING = "FLUSHING"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass(frozen=True)
class WorkerAssignment:
    """Quota of one worker"""
    worker_id: int
    events_to_send: int


@dataclass(frozen=True)
class WorkerResult:
    """Outcome of a successful worker"""
    worker_id: int
    events_sent: int
    elapsed_s: float
    address: str


class SenderWorker:
    """Sends one worker's quota over its own connection"""

    def __init__(
        self,
        assignment: WorkerAssignment,
        rows: RowStore,
        connection: ConnectionConfig,
        delay_ms: int = 0,
        timestamp_from_file: bool = False,
        stop_event: Optional[threading.Event] = None,
        progress_every: int = 0
    ):
        """
        Args:
            assignment: Worker id and event quota
            rows: Shared, read-only row set
            connection: Factory for this worker's sender
            delay_ms: Pause after every event (0 disables pacing)
            timestamp_from_file: Use row timestamps instead of submit time
            stop_event: Set to interrupt the pacing delay
            progress_every: Log progress every N events (0 disables)
        """
        self.assignment = assignment
        self.rows = rows
        self.connection = connection
        self.delay_s = delay_ms / 1000.0
        self.timestamp_from_file = timestamp_from_file
        self.stop_event = stop_event or threading.Event()
        self.progress_every = progress_every

        self.state = WorkerState.IDLE
        self.events_sent = 0

    @property
    def worker_id(self) -> int:
        return self.assignment.worker_id

    def _timestamp(self, row: TradeRow):
        if self.timestamp_from_file:
            return row.event_time
        return TimestampNanos.now()

    def _emit(self, sender, row: TradeRow):
        sender.row(
            TABLE_NAME,
            symbols={"symbol": row.symbol, "side": row.side},
            columns={"price": row.price, "amount": row.amount},
            at=self._timestamp(row)
        )

    def _pace(self):
        # Event.wait returns True only when a stop was requested
        if self.stop_event.wait(self.delay_s):
            raise InterruptedError("pacing delay interrupted")

    def run(self) -> WorkerResult:
        """
        Connect, send the quota, flush and close.

        Returns:
            WorkerResult with events_sent == events_to_send

        Raises:
            WorkerError: Connect, send, flush or pacing failure (sender already closed)
        """
        quota = self.assignment.events_to_send
        address = self.connection.address_for(self.worker_id)
        logger.info(f"Sender {self.worker_id} will send {quota} events to {address}")

        start = time.time()
        sender = None
        try:
            sender = self.connection.build(self.worker_id)
            sender.establish()
            self.state = WorkerState.CONNECTED

            self.state = WorkerState.SENDING
            for i in range(quota):
                self._emit(sender, self.rows.row_at(i))
                self.events_sent += 1

                if self.progress_every and self.events_sent % self.progress_every == 0:
                    elapsed = time.time() - start
                    rate = self.events_sent / elapsed if elapsed > 0 else 0
                    logger.debug(
                        f"Sender {self.worker_id}: {self.events_sent}/{quota} events "
                        f"({rate:.0f} events/s)"
                    )

                if self.delay_s > 0:
                    self._pace()

            self.state = WorkerState.FLUSHING
            sender.flush()
            self.state = WorkerState.DONE

        except InterruptedError as e:
            self.state = WorkerState.FAILED
            logger.error(f"Sender {self.worker_id} interrupted after {self.events_sent} events")
            raise WorkerInterrupted(self.worker_id, e, self.events_sent) from e
        except Exception as e:
            self.state = WorkerState.FAILED
            logger.error(f"Sender {self.worker_id} got error: {e!r}")
            raise WorkerError(self.worker_id, e, self.events_sent) from e
        finally:
            if sender is not None:
                self._close(sender)

        elapsed = time.time() - start
        logger.info(f"Sender {self.worker_id} finished sending {self.events_sent} events")
        return WorkerResult(self.worker_id, self.events_sent, elapsed, address)

    def _close(self, sender):
        # Success already flushed explicitly; a failed worker must not block on flush
        try:
            sender.close(flush=False)
        except Exception as e:
            logger.warning(f"Sender {self.worker_id} close error: {e!r}")
