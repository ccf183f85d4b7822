"""
Module: batcher.py
Description: Chunked transfer of messages to a destination queue.

Splits a sequence of messages into chunks under the SQS per-call limit
and sends them chunk by chunk. A failed chunk is recorded and the
remaining chunks are still sent.
"""

from typing import List, Sequence, TypeVar

from sqscli.config.settings import SQS_MAX_BATCH_SIZE
from sqscli.exceptions import ItemValidationError, SqsCliError
from sqscli.models.message import Message, OutboundMessage, QueueRef
from sqscli.models.results import ItemFailure, TransferReport
from sqscli.drain.attributes import AttributeMapper
from sqscli.sqs_queue.sqs import SQSTransport
from sqscli.utils.batch_helpers import chunk_list
from sqscli.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


class Batcher:
    """
    Send arbitrarily many messages through SendMessageBatch.

    Attributes:
        transport: SQS transport used for send_batch calls
        mapper: Builds outbound payloads from received messages
        chunk_size: Messages per call (1..10)
    """

    def __init__(
        self,
        transport: SQSTransport,
        mapper: AttributeMapper,
        chunk_size: int = SQS_MAX_BATCH_SIZE
    ):
        if not 1 <= chunk_size <= SQS_MAX_BATCH_SIZE:
            raise ValueError(f"chunk_size must be between 1 and {SQS_MAX_BATCH_SIZE}")

        self.transport = transport
        self.mapper = mapper
        self.chunk_size = chunk_size

    @staticmethod
    def chunk(items: Sequence[T], size: int = SQS_MAX_BATCH_SIZE) -> List[List[T]]:
        """
        Partition items into ordered chunks of at most size items.

        Raises:
            ValueError: If size is outside 1..10
        """
        if not 1 <= size <= SQS_MAX_BATCH_SIZE:
            raise ValueError(f"size must be between 1 and {SQS_MAX_BATCH_SIZE}")
        return chunk_list(items, size)

    def validate(self, queue: QueueRef, message: Message) -> None:
        """
        Check that a message can be sent to queue.

        Raises:
            ItemValidationError: If the message would be rejected as an item
        """
        self.mapper.validate(message, queue.ordered)

    def _prepare(self, queue: QueueRef, messages: Sequence[Message], report: TransferReport) -> List[OutboundMessage]:
        """Map messages to payloads; malformed ones become item errors."""
        outbound = []
        for message in messages:
            try:
                outbound.append(self.mapper.map(message, queue.ordered))
            except ItemValidationError as e:
                logger.error(
                    "Message excluded from transfer",
                    queue_name=queue.name,
                    message_id=message.message_id,
                    error=str(e)
                )
                report.item_errors.append(
                    ItemFailure(id=message.message_id, code=type(e).__name__, message=str(e), sender_fault=True)
                )
                report.failed_ids.append(message.message_id)
        return outbound

    def send_all(self, queue: QueueRef, messages: Sequence[Message]) -> TransferReport:
        """
        Send every message to queue, chunk by chunk.

        Every chunk is attempted even when an earlier one failed.

        Args:
            queue: Destination queue
            messages: Messages to transfer, in order

        Returns:
            TransferReport with transferred ids, item errors and chunk errors
        """
        report = TransferReport(destination=queue.name)
        outbound = self._prepare(queue, messages, report)

        for index, chunk in enumerate(self.chunk(outbound, self.chunk_size)):
            entry_ids = [message.entry_id for message in chunk]
            try:
                outcome = self.transport.send_batch(queue, chunk)
            except SqsCliError as e:
                # The whole chunk is lost; keep going to save the rest
                report.chunk_errors.append(f"batch {index}: {e}")
                report.failed_ids.extend(entry_ids)
                continue

            report.transferred_ids.extend(outcome.successful)
            for failure in outcome.failed:
                logger.error(
                    "Message rejected by destination queue",
                    queue_name=queue.name,
                    message_id=failure.id,
                    error_code=failure.code,
                    error_message=failure.message
                )
                report.item_errors.append(failure)
                report.failed_ids.append(failure.id)

        log = logger.info if report.ok else logger.error
        log(
            "Transfer finished",
            queue_name=queue.name,
            transferred=len(report.transferred_ids),
            failed=len(report.failed_ids),
            chunk_errors=len(report.chunk_errors)
        )

        return report
