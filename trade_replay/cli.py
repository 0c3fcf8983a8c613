"""trade_replay/cli.py

Command line entry point.

Exit status:
    0 - every sender finished
    1 - at least one sender failed (the others still ran to completion)
    2 - usage / validation error, nothing was sent
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from trade_replay.config.settings import settings
from trade_replay.core.exceptions import ConfigError, CsvFormatError
from trade_replay.core.logger import configure_logging, logger
from trade_replay.data.row_store import load_rows
from trade_replay.ingest.connection_config import ConnectionConfig
from trade_replay.ingest.dispatcher import Dispatcher, DispatchReport

EXIT_OK = 0
EXIT_WORKER_FAILED = 1
EXIT_USAGE = 2

_TRUE = {"true", "yes", "1", "on"}
_FALSE = {"false", "no", "0", "off"}


def parse_bool(value: str) -> bool:
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"expected true or false, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trade-replay",
        description="Replay CSV trades into QuestDB over ILP/HTTP with parallel senders",
        allow_abbrev=False
    )
    parser.add_argument('--addrs', default=settings.QDB_ADDRS,
                        help='Comma separated host:port list')
    parser.add_argument('--token', default=settings.QDB_TOKEN, help='Bearer token auth')
    parser.add_argument('--username', default=settings.QDB_USERNAME, help='Basic auth user')
    parser.add_argument('--password', default=settings.QDB_PASSWORD, help='Basic auth password')
    parser.add_argument('--total-events', type=int, default=settings.TOTAL_EVENTS,
                        help='Events to send across all senders')
    parser.add_argument('--delay-ms', type=int, default=settings.DELAY_MS,
                        help='Pause after every event, per sender')
    parser.add_argument('--num-senders', type=int, default=settings.NUM_SENDERS,
                        help='Concurrent senders, one connection each')
    parser.add_argument('--retry-timeout', type=int, default=settings.RETRY_TIMEOUT_MS,
                        help='Per-connection retry timeout (ms)')
    parser.add_argument('--csv', default=settings.CSV_PATH,
                        help='Input CSV, gzip when the name ends with .gz')
    parser.add_argument('--timestamp-from-file', type=parse_bool,
                        default=settings.TIMESTAMP_FROM_FILE, metavar='{true,false}',
                        help='Use the CSV timestamp column instead of submit time')
    return parser


def validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace):
    """Exit with status 2 on invalid values (argparse.error)"""
    if not Path(args.csv).is_file():
        parser.error(f"CSV file not found: {args.csv}")
    if args.num_senders <= 0:
        parser.error("--num-senders must be > 0")
    if args.total_events <= 0:
        parser.error("--total-events must be > 0")
    if args.delay_ms < 0:
        parser.error("--delay-ms must be >= 0")


def print_summary(report: DispatchReport):
    for worker_id in sorted(report.results):
        result = report.results[worker_id]
        print(f"Sender {worker_id} finished sending {result.events_sent} events "
              f"in {result.elapsed_s:.1f}s")
    print(f"Sent {report.total_sent} events in {report.elapsed_s:.1f}s "
          f"({report.events_per_second:.1f} events/s)")
    print("All workers completed.")


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging(settings.LOG_LEVEL, settings.LOG_FILE)

    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(parser, args)

    try:
        connection = ConnectionConfig.from_options(
            args.addrs,
            token=args.token,
            username=args.username,
            password=args.password,
            retry_timeout_ms=args.retry_timeout
        )
    except ConfigError as e:
        print(f"Invalid connection settings: {e}", file=sys.stderr)
        return EXIT_USAGE

    logger.info(f"Ingestion started. Connecting with config: {connection.describe()}")

    try:
        rows = load_rows(args.csv, require_timestamp=args.timestamp_from_file)
    except CsvFormatError as e:
        print(str(e), file=sys.stderr)
        return EXIT_USAGE
    if len(rows) == 0:
        print("CSV has no data rows.", file=sys.stderr)
        return EXIT_USAGE

    dispatcher = Dispatcher(
        rows,
        connection,
        delay_ms=args.delay_ms,
        timestamp_from_file=args.timestamp_from_file,
        progress_every=settings.PROGRESS_EVERY
    )
    report = dispatcher.run(args.total_events, args.num_senders)

    if not report.ok:
        for error in report.errors:
            logger.error(str(error))
        print(f"Worker failed: {report.first_error}", file=sys.stderr)
        return EXIT_WORKER_FAILED

    print_summary(report)
    return EXIT_OK


def run():
    """Console script entry point"""
    sys.exit(main())


if __name__ == "__main__":
    run()
