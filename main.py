"""main.py

Main entry point for trade-replay.

Usage:
    python main.py --addrs questdb:9000 --csv ./trades20250728.csv.gz --num-senders 10
"""

from trade_replay.cli import run


if __name__ == "__main__":
    run()
