"""trade_replay/ingest/dispatcher.py

Dispatcher - splits the total event budget across sender workers, runs them
concurrently on a thread pool and aggregates their outcome.

A failing worker never cancels its siblings: the dispatcher waits for every
worker to finish and then reports the first failure it observed.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from trade_replay.core.exceptions import WorkerError
from trade_replay.core.logger import logger
from trade_replay.data.row_store import RowStore
from trade_replay.ingest.connection_config import ConnectionConfig
from trade_replay.ingest.worker import SenderWorker, WorkerAssignment, WorkerResult


def compute_assignments(total_events: int, num_workers: int) -> List[WorkerAssignment]:
    """
    Split total_events as evenly as possible.

    The first total_events % num_workers workers get one extra event, so
    quotas sum to total_events and differ by at most one.
    """
    if total_events <= 0:
        raise ValueError("total_events must be > 0")
    if num_workers <= 0:
        raise ValueError("num_workers must be > 0")

    base, rem = divmod(total_events, num_workers)
    return [
        WorkerAssignment(worker_id, base + (1 if worker_id < rem else 0))
        for worker_id in range(num_workers)
    ]


@dataclass
class DispatchReport:
    """Aggregated outcome of one dispatch"""
    assignments: List[WorkerAssignment]
    results: Dict[int, WorkerResult] = field(default_factory=dict)
    errors: List[WorkerError] = field(default_factory=list)  # in observed order
    elapsed_s: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def first_error(self) -> Optional[WorkerError]:
        return self.errors[0] if self.errors else None

    @property
    def total_sent(self) -> int:
        return sum(r.events_sent for r in self.results.values())

    @property
    def events_per_second(self) -> float:
        return self.total_sent / self.elapsed_s if self.elapsed_s > 0 else 0.0


class Dispatcher:
    """Runs one SenderWorker per assignment and waits for all of them"""

    def __init__(
        self,
        rows: RowStore,
        connection: ConnectionConfig,
        delay_ms: int = 0,
        timestamp_from_file: bool = False,
        progress_every: int = 0
    ):
        self.rows = rows
        self.connection = connection
        self.delay_ms = delay_ms
        self.timestamp_from_file = timestamp_from_file
        self.progress_every = progress_every
        self.stop_event = threading.Event()

    def make_worker(self, assignment: WorkerAssignment) -> SenderWorker:
        return SenderWorker(
            assignment,
            self.rows,
            self.connection,
            delay_ms=self.delay_ms,
            timestamp_from_file=self.timestamp_from_file,
            stop_event=self.stop_event,
            progress_every=self.progress_every
        )

    def stop(self):
        """Interrupt every worker's pacing delay"""
        self.stop_event.set()

    def run(self, total_events: int, num_workers: int) -> DispatchReport:
        """
        Send total_events across num_workers concurrent workers.

        Returns:
            DispatchReport (check .ok / .first_error)
        """
        assignments = compute_assignments(total_events, num_workers)
        report = DispatchReport(assignments)
        workers = [self.make_worker(a) for a in assignments]

        logger.info(
            f"Dispatching {total_events} events over {num_workers} senders "
            f"(delay {self.delay_ms} ms, timestamps from "
            f"{'file' if self.timestamp_from_file else 'submit time'})"
        )

        start = time.time()
        with ThreadPoolExecutor(max_workers=num_workers, thread_name_prefix="sender") as executor:
            futures = {executor.submit(w.run): w for w in workers}
            pending = set(futures)
            while pending:
                try:
                    for future in as_completed(pending):
                        pending.discard(future)
                        self._collect(report, futures[future], future)
                except KeyboardInterrupt:
                    logger.warning("Interrupt received, stopping senders after their current event")
                    self.stop()

        report.elapsed_s = time.time() - start
        return report

    def _collect(self, report: DispatchReport, worker: SenderWorker, future):
        try:
            result = future.result()
        except WorkerError as e:
            report.errors.append(e)
        except Exception as e:
            # Anything escaping SenderWorker.run is still that worker's failure
            report.errors.append(WorkerError(worker.worker_id, e, worker.events_sent))
        else:
            report.results[result.worker_id] = result
