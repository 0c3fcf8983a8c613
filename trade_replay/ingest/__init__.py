"""QuestDB ingestion: connection config, sender workers and dispatcher"""

from trade_replay.ingest.connection_config import AuthMode, ConnectionConfig, mask_secrets
from trade_replay.ingest.worker import SenderWorker, WorkerAssignment, WorkerResult, WorkerState
from trade_replay.ingest.dispatcher import Dispatcher, DispatchReport, compute_assignments

__all__ = [
    'AuthMode',
    'ConnectionConfig',
    'mask_secrets',
    'SenderWorker',
    'WorkerAssignment',
    'WorkerResult',
    'WorkerState',
    'Dispatcher',
    'DispatchReport',
    'compute_assignments',
]
