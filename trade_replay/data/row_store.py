"""trade_replay/data/row_store.py

Trade row loader - reads the replay data set (plain or gzip CSV) into an
immutable in-memory RowStore shared read-only by every sender worker.

Expected CSV format:
    symbol,side,price,amount[,timestamp]
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Union

import pandas as pd

from trade_replay.core.exceptions import CsvFormatError
from trade_replay.core.logger import logger

REQUIRED_COLUMNS = ("symbol", "side", "price", "amount")
TIMESTAMP_COLUMN = "timestamp"


@dataclass(frozen=True)
class TradeRow:
    """One parsed trade record"""
    symbol: str
    side: str
    price: float
    amount: float
    timestamp: Optional[str] = None  # raw ISO-8601, only in timestamp-from-file mode
    event_time: Optional[datetime] = None  # parsed, timezone-aware form of timestamp


class RowStore(Sequence):
    """
    Immutable ordered sequence of TradeRow.

    Rows are replayed cyclically: row_at(i) is rows[i mod len(rows)], so any
    event quota can be served from a finite data set.
    """

    def __init__(self, rows):
        self._rows = tuple(rows)

    def __len__(self) -> int:
        return len(self._rows)

    def __getitem__(self, index):
        return self._rows[index]

    def __iter__(self) -> Iterator[TradeRow]:
        return iter(self._rows)

    def row_at(self, i: int) -> TradeRow:
        """Row for the i-th emitted event (wraps around)"""
        return self._rows[i % len(self._rows)]

    def __repr__(self) -> str:
        return f"RowStore({len(self._rows)} rows)"


def is_gzip_path(path: Union[str, Path]) -> bool:
    """Compression is chosen by suffix only, content is never sniffed"""
    return str(path).endswith(".gz")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into a timezone-aware instant.

    Naive timestamps are taken as UTC.
    """
    ts = pd.Timestamp(value)
    if ts is pd.NaT:
        raise ValueError(f"not a timestamp: {value!r}")
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts


def _check_header(header: List[str], require_timestamp: bool):
    required = list(REQUIRED_COLUMNS)
    if require_timestamp:
        required.append(TIMESTAMP_COLUMN)

    for column in required:
        if column not in header:
            raise CsvFormatError(
                f"CSV missing required column: {column} in header {header}"
            )


def _parse_float(value: str, column: str, row_number: int) -> float:
    try:
        return float(value)
    except ValueError:
        raise CsvFormatError(
            f"Invalid {column} value {value!r} in data row {row_number}"
        ) from None


def load_rows(path: Union[str, Path], require_timestamp: bool = False) -> RowStore:
    """
    Load trade rows from a CSV file.

    Args:
        path: CSV path; a ".gz" suffix selects gzip decompression
        require_timestamp: Whether the timestamp column is required and parsed

    Returns:
        RowStore in file order (may be empty; callers must reject that)

    Raises:
        CsvFormatError: Unreadable file, missing column or malformed
            numeric/timestamp value
    """
    compression = "gzip" if is_gzip_path(path) else None

    try:
        df = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            compression=compression,
            encoding="utf-8",
            index_col=False,  # trailing delimiters must not shift columns
        )
    except pd.errors.EmptyDataError:
        # No header at all
        logger.warning(f"CSV {path} is empty")
        return RowStore([])
    except pd.errors.ParserError as e:
        raise CsvFormatError(f"Cannot parse CSV {path}: {e}") from e
    except (OSError, EOFError, UnicodeDecodeError) as e:
        # Not gzip despite the suffix, truncated gzip, or not UTF-8
        raise CsvFormatError(f"Cannot read CSV {path}: {e}") from e

    df.columns = [str(c).strip() for c in df.columns]
    _check_header(list(df.columns), require_timestamp)

    df = df.fillna("")
    symbols = df["symbol"].tolist()
    sides = df["side"].tolist()
    prices = df["price"].tolist()
    amounts = df["amount"].tolist()
    timestamps = df[TIMESTAMP_COLUMN].tolist() if require_timestamp else [None] * len(df)

    rows = []
    for n, (symbol, side, price, amount, ts) in enumerate(
        zip(symbols, sides, prices, amounts, timestamps), start=1
    ):
        event_time = None
        if ts is not None:
            ts = ts.strip()
            try:
                event_time = parse_timestamp(ts)
            except ValueError:
                raise CsvFormatError(
                    f"Invalid timestamp value {ts!r} in data row {n}"
                ) from None

        rows.append(TradeRow(
            symbol=symbol.strip(),
            side=side.strip(),
            price=_parse_float(price.strip(), "price", n),
            amount=_parse_float(amount.strip(), "amount", n),
            timestamp=ts,
            event_time=event_time,
        ))

    logger.info(f"Loaded {len(rows)} rows from {path}")
    return RowStore(rows)
