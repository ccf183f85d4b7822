"""
Module: drainer.py
Description: Drain loop: receive, forward to sinks, acknowledge, transfer.

The Drainer empties a source queue batch by batch. Each message is
forwarded to every sink in receipt order and the batch is then deleted
from the source. Sinks that re-send messages (QueueSink) are flushed
according to the delete policy:

- DEFERRED: every batch is deleted as soon as it has been forwarded and
  the staged messages are sent once the source is empty. A send failure
  at that point means the failed messages are gone from the source; they
  are reported by id in the aggregate error. This is the only policy
  that can restore messages to their own source queue.
- CONFIRMED: every batch is sent before it is deleted, and only
  messages whose send succeeded are deleted. Failed messages stay in the
  source queue.

Under both policies a message a sink refuses in write() (one the
destination would reject) is never deleted.

Messages that stay in the source (refused, or not transferred under
CONFIRMED) are held: their visibility timeout is raised so the drain
cannot receive them again, and they are made visible again when the run
ends. A run therefore always reaches EMPTY or ABORTED.

Delivery is at-least-once. A message whose delete fails becomes visible
again after the visibility timeout; if that happens during the run it is
not forwarded a second time, but a later run will see it again.
"""

from enum import Enum
from typing import Dict, List, Optional, Sequence, Set

from sqscli.config.settings import SQS_MAX_BATCH_SIZE, SQS_MAX_VISIBILITY_TIMEOUT
from sqscli.exceptions import ItemValidationError, SqsCliError, TransferError
from sqscli.models.message import Message, QueueRef
from sqscli.models.results import DrainResult, DrainState, TransferReport
from sqscli.drain.sinks import MessageSink, QueueSink
from sqscli.sqs_queue.sqs import SQSTransport
from sqscli.utils.batch_helpers import chunk_list
from sqscli.utils.logger import get_logger

logger = get_logger(__name__)


class DeletePolicy(str, Enum):
    """When source messages are deleted relative to their transfer."""

    DEFERRED = "deferred"
    CONFIRMED = "confirmed"


class Drainer:
    """
    Drain a source queue into one or more sinks.

    Attributes:
        transport: SQS transport
        source: Queue to drain
        sinks: Consumers of the drained messages
        policy: Delete policy for re-sent messages
        batch_size: Messages per receive call (1..10)
        hold_timeout: Visibility timeout for messages held in the source

    Example:
        >>> drainer = Drainer(transport, source, [CsvSink()])
        >>> result = drainer.run()
        >>> result.state
        <DrainState.EMPTY: 'empty'>
    """

    def __init__(
        self,
        transport: SQSTransport,
        source: QueueRef,
        sinks: Sequence[MessageSink],
        policy: DeletePolicy = DeletePolicy.DEFERRED,
        batch_size: int = SQS_MAX_BATCH_SIZE,
        hold_timeout: int = SQS_MAX_VISIBILITY_TIMEOUT
    ):
        if not sinks:
            raise ValueError("at least one sink is required")
        if not 1 <= batch_size <= SQS_MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {SQS_MAX_BATCH_SIZE}")
        if not 1 <= hold_timeout <= SQS_MAX_VISIBILITY_TIMEOUT:
            raise ValueError(f"hold_timeout must be between 1 and {SQS_MAX_VISIBILITY_TIMEOUT}")

        if policy == DeletePolicy.CONFIRMED:
            for sink in sinks:
                if isinstance(sink, QueueSink) and sink.destination.url == source.url:
                    raise ValueError(
                        "confirmed delete policy cannot re-send to the source queue"
                    )

        self.transport = transport
        self.source = source
        self.sinks = list(sinks)
        self.policy = DeletePolicy(policy)
        self.batch_size = batch_size
        self.hold_timeout = hold_timeout

    def run(self) -> DrainResult:
        """
        Drain the source queue until a receive returns no messages.

        Returns:
            DrainResult in state EMPTY on success, ABORTED otherwise.
            Fatal errors are attached to the result, not raised.
        """
        result = DrainResult(source=self.source.name)
        forwarded: Set[str] = set()
        accounted: Set[str] = set()
        deleted: Set[str] = set()
        held: Dict[str, Message] = {}

        logger.info(
            "Drain started",
            queue_name=self.source.name,
            ordered=self.source.ordered,
            policy=self.policy.value
        )

        try:
            for sink in self.sinks:
                sink.begin(self.source)

            while True:
                batch = self.transport.receive(self.source, self.batch_size)
                if not batch:
                    break

                result.batches += 1
                result.received += len(batch)
                fresh: List[Message] = []
                to_delete: List[Message] = []
                to_hold: List[Message] = []

                for message in batch:
                    if message.message_id in forwarded:
                        result.duplicates += 1
                        logger.warning(
                            "Message received again during this run",
                            queue_name=self.source.name,
                            message_id=message.message_id
                        )
                        if message.message_id in accounted:
                            to_delete.append(message)
                        else:
                            to_hold.append(message)
                        continue

                    forwarded.add(message.message_id)
                    result.rendered += 1
                    if self._forward(message):
                        fresh.append(message)
                    else:
                        to_hold.append(message)

                if self.policy == DeletePolicy.CONFIRMED:
                    failed = self._flush(result)
                    accounted.update(m.message_id for m in fresh if m.message_id not in failed)
                    to_hold.extend(m for m in fresh if m.message_id in failed)
                else:
                    accounted.update(m.message_id for m in fresh)

                to_delete.extend(m for m in fresh if m.message_id in accounted)
                self._acknowledge(to_delete, result, deleted)
                self._hold(to_hold, held)

            if self.policy == DeletePolicy.DEFERRED:
                self._flush(result)

        except SqsCliError as e:
            logger.error(
                "Drain aborted",
                queue_name=self.source.name,
                error=str(e),
                error_type=type(e).__name__
            )
            if self.policy == DeletePolicy.DEFERRED:
                self._salvage(result)
            result.state = DrainState.ABORTED
            result.error = e
            self._release(held, result)
            return result

        error = self._transfer_error(result, deleted)
        if error is not None:
            logger.error(
                "There were errors re-adding the messages",
                queue_name=self.source.name,
                lost_message_ids=error.lost_message_ids,
                error=str(error)
            )
            result.state = DrainState.ABORTED
            result.error = error
        else:
            result.state = DrainState.EMPTY

        self._release(held, result)

        logger.info(
            "Drain finished",
            queue_name=self.source.name,
            state=result.state.value,
            received=result.received,
            deleted=result.deleted,
            delete_failures=len(result.delete_failures),
            duplicates=result.duplicates,
            held=result.held
        )

        return result

    def _forward(self, message: Message) -> bool:
        """Write a message to every sink; False if any sink refused it."""
        accepted = True
        for sink in self.sinks:
            try:
                sink.write(message)
            except ItemValidationError:
                accepted = False
        return accepted

    def _acknowledge(self, messages: List[Message], result: DrainResult, deleted: Set[str]) -> None:
        """Delete messages from the source; failures are logged, not retried."""
        if not messages:
            return

        outcome = self.transport.delete_batch(self.source, messages)
        result.deleted += len(outcome.successful)
        deleted.update(outcome.successful)
        result.delete_failures.extend(outcome.failed)

    def _hold(self, messages: List[Message], held: Dict[str, Message]) -> None:
        """Hide messages that stay in the source for the rest of the run."""
        if not messages:
            return

        outcome = self.transport.change_visibility(self.source, messages, self.hold_timeout)
        by_id = {m.message_id: m for m in messages}
        for message_id in outcome.successful:
            held[message_id] = by_id[message_id]

    def _release(self, held: Dict[str, Message], result: DrainResult) -> None:
        """Make held messages visible again; failures only delay their return."""
        result.held = len(held)
        for chunk in chunk_list(list(held.values()), SQS_MAX_BATCH_SIZE):
            try:
                self.transport.change_visibility(self.source, chunk, 0)
            except SqsCliError as e:
                logger.error(
                    "Held messages could not be released",
                    queue_name=self.source.name,
                    count=len(chunk),
                    hold_timeout=self.hold_timeout,
                    error=str(e)
                )
                return

    def _flush(self, result: DrainResult) -> Set[str]:
        """Flush every sink and return the ids that failed to transfer."""
        failed: Set[str] = set()
        for sink in self.sinks:
            report = sink.flush()
            if report is None:
                continue
            failed.update(report.failed_ids)
            self._record(result, report)
        return failed

    def _salvage(self, result: DrainResult) -> None:
        """Try to send messages already staged when the drain is aborted."""
        try:
            self._flush(result)
        except SqsCliError as e:
            logger.error(
                "Staged messages could not be re-sent after abort",
                queue_name=self.source.name,
                error=str(e)
            )

    @staticmethod
    def _record(result: DrainResult, report: TransferReport) -> None:
        for existing in result.transfers:
            if existing.destination == report.destination:
                existing.merge(report)
                return
        result.transfers.append(report)

    @staticmethod
    def _transfer_error(result: DrainResult, deleted: Set[str]) -> Optional[TransferError]:
        """Aggregate every failed transfer into one TransferError."""
        failing = [report for report in result.transfers if not report.ok]
        if not failing:
            return None

        chunk_errors: List[str] = []
        item_errors: List[str] = []
        lost: List[str] = []
        for report in failing:
            chunk_errors.extend(report.chunk_errors)
            item_errors.extend(str(failure) for failure in report.item_errors)
            lost.extend(i for i in report.failed_ids if i in deleted)

        return TransferError(
            queue_name=", ".join(report.destination for report in failing),
            chunk_errors=chunk_errors,
            item_errors=item_errors,
            lost_message_ids=lost
        )
