"""Core utilities module"""

from trade_replay.core.logger import logger
from trade_replay.core.exceptions import (
    ReplayError,
    ConfigError,
    CsvFormatError,
    WorkerError,
    WorkerInterrupted,
)

__all__ = [
    'logger',
    'ReplayError',
    'ConfigError',
    'CsvFormatError',
    'WorkerError',
    'WorkerInterrupted',
]
