"""trade_replay/core/exceptions.py

Error taxonomy.

Usage errors (ConfigError, CsvFormatError) are raised before any network
activity and map to exit status 2. WorkerError is a per-sender runtime failure
and maps to exit status 1.
"""


class ReplayError(Exception):
    """Base error for trade_replay"""
    pass


class ConfigError(ReplayError):
    """Invalid flags, settings or target addresses"""
    pass


class CsvFormatError(ReplayError):
    """Input CSV is missing a column or has an unparseable value"""
    pass


class WorkerError(ReplayError):
    """A worker failed while connecting, sending or flushing"""

    def __init__(self, worker_id: int, cause: BaseException, events_sent: int = 0):
        self.worker_id = worker_id
        self.cause = cause
        self.events_sent = events_sent
        super().__init__(f"Sender {worker_id} failed after {events_sent} events: {cause!r}")


class WorkerInterrupted(WorkerError):
    """Pacing delay was interrupted by a stop request"""
    pass
