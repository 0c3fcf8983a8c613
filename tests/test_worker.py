"""tests/test_worker.py

SenderWorker: cyclic replay, timestamps, pacing, flush and guaranteed close.
"""

import threading
from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from questdb.ingress import TimestampNanos

from trade_replay.core.exceptions import WorkerError, WorkerInterrupted
from trade_replay.data.row_store import RowStore, TradeRow, load_rows
from trade_replay.ingest.connection_config import ConnectionConfig
from trade_replay.ingest.worker import SenderWorker, WorkerAssignment, WorkerState
from tests.utils.fake_sender import FakeSenderFactory

CONFIG = ConnectionConfig.from_options("questdb:9000")

TWO_ROWS = RowStore([
    TradeRow("BTC-USD", "buy", 64000.5, 0.25),
    TradeRow("ETH-USD", "sell", 3100.0, 1.5),
])


def make_worker(quota, rows=TWO_ROWS, worker_id=0, **kwargs):
    return SenderWorker(WorkerAssignment(worker_id, quota), rows, CONFIG, **kwargs)


class TestSendLoop:

    def test_rows_replayed_cyclically(self, fake_senders):
        result = make_worker(5).run()

        sender = fake_senders.senders[0]
        emitted = [r["symbols"]["symbol"] for r in sender.rows]
        assert emitted == ["BTC-USD", "ETH-USD", "BTC-USD", "ETH-USD", "BTC-USD"]
        assert result.events_sent == 5

    def test_emitted_index_is_i_mod_len(self, fake_senders):
        rows = RowStore([TradeRow(f"S{i}", "buy", float(i), 1.0) for i in range(7)])
        make_worker(23, rows=rows).run()

        emitted = [r["symbols"]["symbol"] for r in fake_senders.senders[0].rows]
        assert emitted == [f"S{i % 7}" for i in range(23)]

    def test_event_shape(self, fake_senders):
        make_worker(1).run()

        event = fake_senders.senders[0].rows[0]
        assert event["table"] == "trades"
        assert event["symbols"] == {"symbol": "BTC-USD", "side": "buy"}
        assert event["columns"] == {"price": 64000.5, "amount": 0.25}

    def test_submit_time_timestamp(self, fake_senders):
        make_worker(2).run()

        for event in fake_senders.senders[0].rows:
            assert isinstance(event["at"], TimestampNanos)

    def test_timestamp_from_file(self, fake_senders, trades_csv):
        rows = load_rows(trades_csv, require_timestamp=True)
        make_worker(3, rows=rows, timestamp_from_file=True).run()

        stamps = [event["at"] for event in fake_senders.senders[0].rows]
        assert stamps[0] == datetime(2025, 7, 28, 10, 0, 0, tzinfo=timezone.utc)
        assert stamps[1] == datetime(2025, 7, 28, 10, 0, 1, tzinfo=timezone.utc)
        assert stamps[2] == stamps[0]

    def test_flush_then_close(self, fake_senders):
        worker = make_worker(3)
        worker.run()

        sender = fake_senders.senders[0]
        assert sender.established
        assert sender.flushed
        assert sender.closed
        assert worker.state is WorkerState.DONE

    def test_zero_quota_still_flushes(self, fake_senders):
        result = make_worker(0).run()

        assert result.events_sent == 0
        assert fake_senders.senders[0].flushed
        assert fake_senders.senders[0].closed

    def test_result_carries_address(self, fake_senders):
        result = make_worker(1, worker_id=4).run()
        assert result.worker_id == 4
        assert result.address == "questdb:9000"


class TestPacing:

    def test_no_delay_never_waits(self, fake_senders):
        stop = Mock(spec=threading.Event)
        make_worker(3, delay_ms=0, stop_event=stop).run()
        stop.wait.assert_not_called()

    def test_waits_after_every_event(self, fake_senders):
        stop = Mock(spec=threading.Event)
        stop.wait.return_value = False

        make_worker(4, delay_ms=50, stop_event=stop).run()

        assert stop.wait.call_count == 4
        stop.wait.assert_called_with(0.05)

    def test_interrupted_delay_fails_worker_and_closes(self, fake_senders):
        stop = threading.Event()
        stop.set()
        worker = make_worker(10, delay_ms=1000, stop_event=stop)

        with pytest.raises(WorkerInterrupted) as exc:
            worker.run()

        assert exc.value.worker_id == 0
        assert exc.value.events_sent == 1
        assert worker.state is WorkerState.FAILED
        assert fake_senders.senders[0].closed
        assert not fake_senders.senders[0].flushed


class TestFailures:

    @pytest.mark.parametrize("stage", ["connect", "row", "flush"])
    def test_failure_wraps_cause_and_closes(self, monkeypatch, stage):
        factory = FakeSenderFactory({0: stage}, fail_at_row=2).install(monkeypatch)
        worker = make_worker(5)

        with pytest.raises(WorkerError) as exc:
            worker.run()

        assert not isinstance(exc.value, WorkerInterrupted)
        assert exc.value.worker_id == 0
        assert exc.value.cause is not None
        assert exc.value.__cause__ is exc.value.cause
        assert "Sender 0" in str(exc.value)
        assert worker.state is WorkerState.FAILED
        assert factory.senders[0].closed
        assert factory.senders[0].close_flush is False

    def test_send_failure_reports_progress(self, monkeypatch):
        FakeSenderFactory({0: "row"}, fail_at_row=2).install(monkeypatch)

        with pytest.raises(WorkerError) as exc:
            make_worker(5).run()
        assert exc.value.events_sent == 2

    def test_build_failure_is_worker_error(self, monkeypatch):
        def build(self, worker_id=0):
            raise OSError("no route to host")

        monkeypatch.setattr(ConnectionConfig, "build", build)

        with pytest.raises(WorkerError, match="no route to host"):
            make_worker(1).run()
