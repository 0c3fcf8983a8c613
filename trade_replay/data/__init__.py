"""Replay data set loading"""

from trade_replay.data.row_store import TradeRow, RowStore, load_rows

__all__ = ['TradeRow', 'RowStore', 'load_rows']
