"""
Module: main.py
Description: Command line entry point for sqscli.

Commands:
- drain-to-table (alias qtocsv): print a queue as CSV on stdout
- redrive: move every message from one queue to another

Only this module turns results and errors into process exit codes.
"""

import argparse
import sys
from typing import List, Optional, TextIO

from sqscli import __version__
from sqscli.config.settings import Settings, load_settings
from sqscli.drain.attributes import AttributeMapper
from sqscli.drain.batcher import Batcher
from sqscli.drain.drainer import DeletePolicy, Drainer
from sqscli.drain.sinks import CsvSink, MessageSink, QueueSink
from sqscli.exceptions import ConfigurationError, SqsCliError
from sqscli.models.results import DrainResult
from sqscli.sqs_queue.sqs import SQSTransport
from sqscli.utils.ids import DeduplicationIdGenerator
from sqscli.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def _batcher(transport: SQSTransport, settings: Settings) -> Batcher:
    mapper = AttributeMapper(
        delay_seconds=settings.sqs_delay_seconds,
        dedup_ids=DeduplicationIdGenerator()
    )
    return Batcher(transport, mapper, chunk_size=settings.sqs_batch_size)


def drain_to_table(
    transport: SQSTransport,
    settings: Settings,
    queue_name: str,
    consume: bool = False,
    stream: Optional[TextIO] = None
) -> DrainResult:
    """
    Write every message of a queue as a CSV row.

    Unless consume is set, the drained messages are re-added to the
    queue once it is empty, so the dump leaves the queue populated.

    Raises:
        QueueNotFoundError: If the queue name cannot be resolved
        TransportError: If SQS cannot be reached
    """
    queue = transport.resolve_queue(queue_name)

    table = CsvSink(stream)
    sinks: List[MessageSink] = [table]
    if not consume:
        sinks.append(QueueSink(_batcher(transport, settings), queue))

    drainer = Drainer(
        transport,
        queue,
        sinks,
        policy=DeletePolicy.DEFERRED,
        batch_size=settings.sqs_batch_size
    )
    result = drainer.run()

    logger.info("Table written", queue_name=queue.name, rows=table.rows, restored=not consume)

    return result


def redrive(
    transport: SQSTransport,
    settings: Settings,
    source_name: str,
    destination_name: str,
    confirm_before_delete: bool = False
) -> DrainResult:
    """
    Transfer every message from source to destination.

    Raises:
        QueueNotFoundError: If a queue name cannot be resolved
        ConfigurationError: If confirm_before_delete is set and source and
            destination are the same queue
        TransportError: If SQS cannot be reached
    """
    source = transport.resolve_queue(source_name)
    destination = transport.resolve_queue(destination_name)

    if confirm_before_delete and source.url == destination.url:
        raise ConfigurationError(
            "--confirm-before-delete cannot be used when the source and destination are the same queue"
        )

    policy = DeletePolicy.CONFIRMED if confirm_before_delete else DeletePolicy.DEFERRED
    drainer = Drainer(
        transport,
        source,
        [QueueSink(_batcher(transport, settings), destination)],
        policy=policy,
        batch_size=settings.sqs_batch_size
    )
    return drainer.run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sqscli",
        description="Drain Amazon SQS queues to CSV or redrive them to another queue",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sqscli drain-to-table -queue orders
  sqscli qtocsv -q orders.fifo --consume
  sqscli redrive -from orders-dlq -to orders
  sqscli redrive --from orders-dlq --to orders --confirm-before-delete

Environment:
  AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY are required.
  AWS_REGION defaults to us-west-2.
        """
    )
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Log level for stderr output (default: LOG_LEVEL or INFO)'
    )

    commands = parser.add_subparsers(dest='command', metavar='<command>')

    table = commands.add_parser(
        'drain-to-table',
        aliases=['qtocsv'],
        help='Output a queue in CSV format'
    )
    table.add_argument(
        '-queue', '--queue', '-q',
        dest='queue',
        required=True,
        help='Queue name'
    )
    table.add_argument(
        '--consume',
        action='store_true',
        help='Do not re-add the messages to the queue after printing them'
    )

    move = commands.add_parser(
        'redrive',
        help='Transfer every message from one queue to another'
    )
    move.add_argument('-from', '--from', dest='source', required=True, help='Source queue name')
    move.add_argument('-to', '--to', dest='destination', required=True, help='Destination queue name')
    move.add_argument(
        '--confirm-before-delete',
        action='store_true',
        help='Delete source messages only after their transfer succeeded'
    )

    return parser


def _report(result: DrainResult) -> int:
    if result.delete_failures:
        print(
            f"Warning: {len(result.delete_failures)} message(s) could not be deleted "
            f"from {result.source} and may be output again by a later run.",
            file=sys.stderr
        )
    if result.succeeded:
        return EXIT_OK
    print(f"Error: {result.error}", file=sys.stderr)
    return EXIT_FAILURE


def main(argv: Optional[List[str]] = None) -> int:
    """Main script execution."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    try:
        settings = load_settings()
    except SqsCliError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    configure_logging(args.log_level or settings.log_level)

    try:
        transport = SQSTransport.from_settings(settings)
        if args.command == 'redrive':
            result = redrive(
                transport,
                settings,
                args.source,
                args.destination,
                confirm_before_delete=args.confirm_before_delete
            )
        else:
            result = drain_to_table(transport, settings, args.queue, consume=args.consume)

    except SqsCliError as e:
        logger.error("Command failed", command=args.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    return _report(result)


if __name__ == '__main__':
    sys.exit(main())
