"""
Module: sinks.py
Description: Terminal consumers of drained messages.

Key Components:
- MessageSink: Base interface used by the Drainer
- CsvSink: Renders one CSV row per message
- QueueSink: Stages messages and transfers them to a destination queue

Dependencies: typing
Author: sqscli Team
"""

import sys
from typing import List, Optional, TextIO

from sqscli.exceptions import ItemValidationError
from sqscli.models.message import Message, QueueRef
from sqscli.models.results import ItemFailure, TransferReport
from sqscli.drain.batcher import Batcher
from sqscli.utils.logger import get_logger

logger = get_logger(__name__)

STANDARD_HEADER = ["Body", "Sent"]
ORDERED_HEADER = [
    "Body",
    "Message Group ID",
    "Message Deduplication ID",
    "Sequence Number",
    "Sent",
]


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace to single spaces and trim the ends."""
    return " ".join(text.split())


def quote_field(value: str) -> str:
    """Double quote a field, backslash escaping only the double quotes in it."""
    return '"' + value.replace('"', '\\"') + '"'


class MessageSink:
    """
    Consumer of drained messages.

    The Drainer calls begin() once with the source queue, write() for
    every message in receipt order, and flush() when staged messages
    must be handed on. flush() returns a TransferReport for sinks that
    re-send messages and None otherwise.

    A sink raises ItemValidationError from write() when it cannot take
    a message; the Drainer then leaves that message in the source queue.
    """

    def begin(self, source: QueueRef) -> None:
        pass

    def write(self, message: Message) -> None:
        raise NotImplementedError

    def flush(self) -> Optional[TransferReport]:
        return None


class CsvSink(MessageSink):
    """
    Render messages as CSV rows.

    Every field is double quoted; double quotes inside a field are
    backslash escaped (backslashes are left untouched) and whitespace runs
    in the body are collapsed.
    Absent attributes render as empty fields.
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout
        self.ordered = False
        self.rows = 0

    def begin(self, source: QueueRef) -> None:
        self.ordered = source.ordered
        header = ORDERED_HEADER if self.ordered else STANDARD_HEADER
        self.stream.write(",".join(header) + "\n")

    def row(self, message: Message) -> List[str]:
        body = collapse_whitespace(message.body)
        if self.ordered:
            return [
                body,
                message.group_id or "",
                message.deduplication_id or "",
                message.sequence_number or "",
                message.sent_timestamp or "",
            ]
        return [body, message.sent_timestamp or ""]

    def write(self, message: Message) -> None:
        self.stream.write(",".join(quote_field(value) for value in self.row(message)) + "\n")
        self.rows += 1

    def flush(self) -> Optional[TransferReport]:
        self.stream.flush()
        return None


class QueueSink(MessageSink):
    """
    Stage messages and send them to a destination queue on flush().

    write() checks every message against the destination before staging
    it. A message the destination would reject is not staged: write()
    raises, so the Drainer leaves it in the source queue, and its item
    error is reported by the next flush().

    Attributes:
        batcher: Batcher used for chunked sends
        destination: Destination queue
    """

    def __init__(self, batcher: Batcher, destination: QueueRef):
        self.batcher = batcher
        self.destination = destination
        self.staged: List[Message] = []
        self.rejected: List[ItemFailure] = []

    def write(self, message: Message) -> None:
        """
        Stage a message for transfer.

        Raises:
            ItemValidationError: If the destination would reject the message
        """
        try:
            self.batcher.validate(self.destination, message)
        except ItemValidationError as e:
            logger.error(
                "Message cannot be sent to destination queue",
                queue_name=self.destination.name,
                message_id=message.message_id,
                error=str(e)
            )
            self.rejected.append(
                ItemFailure(id=message.message_id, code=type(e).__name__, message=str(e), sender_fault=True)
            )
            raise
        self.staged.append(message)

    def flush(self) -> Optional[TransferReport]:
        """
        Transfer all staged messages and clear the stage.

        Returns:
            TransferReport for the staged messages, including the
            messages rejected by write() since the last flush
        """
        staged, self.staged = self.staged, []
        rejected, self.rejected = self.rejected, []

        if staged:
            logger.info(
                "Transferring staged messages",
                queue_name=self.destination.name,
                count=len(staged)
            )
            report = self.batcher.send_all(self.destination, staged)
        else:
            report = TransferReport(destination=self.destination.name)

        report.item_errors.extend(rejected)
        report.failed_ids.extend(failure.id for failure in rejected)
        return report
