import gzip

import pytest

from tests.utils.fake_sender import FakeSenderFactory

TRADES_CSV = (
    "symbol,side,price,amount,timestamp\n"
    "BTC-USD,buy,64000.5,0.25,2025-07-28T10:00:00Z\n"
    "ETH-USD,sell,3100.0,1.5,2025-07-28T10:00:01Z\n"
)


@pytest.fixture
def trades_csv(tmp_path):
    path = tmp_path / "trades.csv"
    path.write_text(TRADES_CSV, encoding="utf-8")
    return path


@pytest.fixture
def trades_csv_gz(tmp_path):
    path = tmp_path / "trades.csv.gz"
    with gzip.open(path, "wt", encoding="utf-8") as f:
        f.write(TRADES_CSV)
    return path


@pytest.fixture
def fake_senders(monkeypatch):
    return FakeSenderFactory().install(monkeypatch)
