"""
Module: sqs.py
Description: SQS transport for queue drain and transfer operations.

Wraps a boto3 SQS client behind the operations the drain pipeline
needs (receive, delete_batch, change_visibility, send_batch, is_ordered)
plus queue name resolution. botocore errors are translated into the
sqscli exception hierarchy at this boundary.
"""

from typing import Any, List, Optional, Sequence

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from sqscli.config.settings import Settings, SQS_MAX_BATCH_SIZE
from sqscli.exceptions import (
    AuthenticationError,
    BatchCallError,
    QueueNotFoundError,
    SqsCliError,
    TransportError,
)
from sqscli.models.message import (
    Message,
    OutboundMessage,
    QueueRef,
    SENT_TIMESTAMP,
)
from sqscli.models.results import BatchOutcome
from sqscli.utils.batch_helpers import validate_batch_size
from sqscli.utils.logger import get_logger

logger = get_logger(__name__)

AUTH_ERROR_CODES = frozenset({
    "AccessDenied",
    "AccessDeniedException",
    "ExpiredToken",
    "IncompleteSignature",
    "InvalidAccessKeyId",
    "InvalidClientTokenId",
    "MissingAuthenticationToken",
    "SignatureDoesNotMatch",
    "UnrecognizedClientException",
})

QUEUE_MISSING_ERROR_CODES = frozenset({
    "AWS.SimpleQueueService.NonExistentQueue",
    "QueueDoesNotExist",
})


def _error_code(e: ClientError) -> str:
    return e.response.get('Error', {}).get('Code', '')


def _error_message(e: ClientError) -> str:
    return e.response.get('Error', {}).get('Message', '')


class SQSTransport:
    """
    SQS transport for drain operations.

    One instance is created per run and passed explicitly to the
    components that talk to SQS. All calls are synchronous.

    Attributes:
        client: boto3 SQS client
        visibility_timeout: Seconds received messages stay hidden
        wait_time_seconds: Receive wait time (0 is a short poll)

    Example:
        >>> transport = SQSTransport.from_settings(load_settings())
        >>> queue = transport.resolve_queue("orders.fifo")
        >>> messages = transport.receive(queue, 10)
    """

    def __init__(
        self,
        client: Any,
        visibility_timeout: int = 10,
        wait_time_seconds: int = 0
    ):
        """
        Initialize SQS transport.

        Args:
            client: boto3 SQS client
            visibility_timeout: Visibility timeout for received messages
            wait_time_seconds: Receive wait time in seconds

        Raises:
            ValueError: If client is missing or timeouts are negative
        """
        if client is None:
            raise ValueError("client must be a boto3 SQS client")
        if visibility_timeout < 0 or wait_time_seconds < 0:
            raise ValueError("timeouts must not be negative")

        self.client = client
        self.visibility_timeout = visibility_timeout
        self.wait_time_seconds = wait_time_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "SQSTransport":
        """
        Build a transport with static credentials from settings.

        Args:
            settings: Validated application settings

        Returns:
            SQSTransport bound to a new boto3 session
        """
        session_token: Optional[str] = None
        if settings.aws_session_token is not None:
            session_token = settings.aws_session_token.get_secret_value()

        session = boto3.session.Session(
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key.get_secret_value(),
            aws_session_token=session_token,
            region_name=settings.aws_region,
        )
        client = session.client('sqs', endpoint_url=settings.aws_endpoint_url)

        logger.info(
            "SQS transport initialized",
            region=settings.aws_region,
            endpoint_url=settings.aws_endpoint_url
        )

        return cls(
            client,
            visibility_timeout=settings.sqs_visibility_timeout,
            wait_time_seconds=settings.sqs_wait_time_seconds
        )

    def _translate(self, e: Exception, operation: str, queue_name: str) -> SqsCliError:
        """Map a botocore error onto the sqscli error hierarchy."""
        if isinstance(e, (NoCredentialsError, PartialCredentialsError)):
            return AuthenticationError(f"{operation} on {queue_name}: {e}")
        if isinstance(e, ClientError):
            code = _error_code(e)
            if code in AUTH_ERROR_CODES:
                return AuthenticationError(
                    f"{operation} on {queue_name} was rejected ({code}): {_error_message(e)}"
                )
            if code in QUEUE_MISSING_ERROR_CODES:
                return QueueNotFoundError(queue_name, _error_message(e))
            return TransportError(
                f"{operation} on {queue_name} failed ({code}): {_error_message(e)}"
            )
        return TransportError(f"{operation} on {queue_name} failed: {e}")

    def get_queue_url(self, name: str) -> str:
        """
        Resolve a queue name to its URL.

        Raises:
            QueueNotFoundError: If the queue does not exist
            AuthenticationError: If credentials are rejected
            TransportError: If SQS cannot be reached
        """
        if not name or not isinstance(name, str):
            raise ValueError("queue name must be a non-empty string")

        try:
            response = self.client.get_queue_url(QueueName=name)
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to resolve queue URL", queue_name=name, error=str(e))
            raise self._translate(e, "GetQueueUrl", name) from e

        return response['QueueUrl']

    def is_ordered(self, queue_url: str) -> bool:
        """
        Tell whether a queue is a FIFO queue.

        This is an expensive call; resolve_queue() stores the result on
        the QueueRef so it is made once per run.

        Raises:
            TransportError: If the attribute cannot be read or parsed
        """
        try:
            response = self.client.get_queue_attributes(
                QueueUrl=queue_url,
                AttributeNames=['FifoQueue']
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to fetch queue attributes", queue_url=queue_url, error=str(e))
            raise self._translate(e, "GetQueueAttributes", queue_url) from e

        value = response.get('Attributes', {}).get('FifoQueue')
        if value is None:
            return False
        if value.lower() in ('true', '1'):
            return True
        if value.lower() in ('false', '0'):
            return False
        raise TransportError(f"Error determining queue type: FifoQueue={value!r}")

    def resolve_queue(self, name: str) -> QueueRef:
        """Resolve a queue name to a QueueRef with its ordering mode."""
        url = self.get_queue_url(name)
        queue = QueueRef(name=name, url=url, ordered=self.is_ordered(url))

        logger.info(
            "Queue resolved",
            queue_name=name,
            queue_url=url,
            ordered=queue.ordered
        )

        return queue

    def receive(self, queue: QueueRef, max_messages: int = SQS_MAX_BATCH_SIZE) -> List[Message]:
        """
        Receive up to max_messages with a short poll.

        Args:
            queue: Queue to receive from
            max_messages: Maximum messages to return (1..10)

        Returns:
            Received messages; an empty list means the queue is currently drained

        Raises:
            ValueError: If max_messages is out of range
            TransportError: If the call fails (fatal for the run)
        """
        if not 1 <= max_messages <= SQS_MAX_BATCH_SIZE:
            raise ValueError(f"max_messages must be between 1 and {SQS_MAX_BATCH_SIZE}")

        attribute_names = ['All'] if queue.ordered else [SENT_TIMESTAMP]

        try:
            response = self.client.receive_message(
                QueueUrl=queue.url,
                AttributeNames=attribute_names,
                MessageAttributeNames=['All'],
                MaxNumberOfMessages=max_messages,
                VisibilityTimeout=self.visibility_timeout,
                WaitTimeSeconds=self.wait_time_seconds
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Error fetching messages", queue_name=queue.name, error=str(e))
            raise self._translate(e, "ReceiveMessage", queue.name) from e

        messages = [Message.from_sqs(raw) for raw in response.get('Messages', [])]

        logger.debug(
            "Messages received",
            queue_name=queue.name,
            count=len(messages)
        )

        return messages

    def delete_batch(self, queue: QueueRef, messages: Sequence[Message]) -> BatchOutcome:
        """
        Acknowledge a batch of received messages.

        Never raises for per-item failures: messages that could not be
        deleted stay in the queue and become visible again once their
        visibility timeout elapses. A call-level service error marks every
        entry failed.

        Args:
            queue: Queue the messages were received from
            messages: Messages to delete (at most 10)

        Returns:
            Per-item outcome

        Raises:
            AuthenticationError: If credentials are rejected
            TransportError: If SQS cannot be reached
        """
        if not messages:
            return BatchOutcome()
        validate_batch_size(messages, SQS_MAX_BATCH_SIZE)

        entries = [
            {'Id': m.message_id, 'ReceiptHandle': m.receipt_handle}
            for m in messages
        ]

        try:
            response = self.client.delete_message_batch(
                QueueUrl=queue.url,
                Entries=entries
            )
            outcome = BatchOutcome.from_response(response)

        except ClientError as e:
            if _error_code(e) in AUTH_ERROR_CODES:
                raise self._translate(e, "DeleteMessageBatch", queue.name) from e
            logger.error(
                "Delete error",
                queue_name=queue.name,
                error_code=_error_code(e),
                error_message=_error_message(e),
                count=len(entries)
            )
            return BatchOutcome.all_failed(
                [m.message_id for m in messages],
                _error_code(e),
                _error_message(e)
            )

        except BotoCoreError as e:
            logger.error("Delete error", queue_name=queue.name, error=str(e))
            raise self._translate(e, "DeleteMessageBatch", queue.name) from e

        for failure in outcome.failed:
            logger.warning(
                "Message not deleted, it will reappear after its visibility timeout",
                queue_name=queue.name,
                message_id=failure.id,
                error_code=failure.code,
                error_message=failure.message
            )

        return outcome

    def change_visibility(
        self,
        queue: QueueRef,
        messages: Sequence[Message],
        timeout: int
    ) -> BatchOutcome:
        """
        Set the visibility timeout of a batch of received messages.

        A timeout of 0 makes the messages receivable again at once. Like
        delete_batch(), per-item and call-level service failures are
        returned in the outcome rather than raised.

        Args:
            queue: Queue the messages were received from
            messages: Messages to update (at most 10)
            timeout: New visibility timeout in seconds

        Returns:
            Per-item outcome

        Raises:
            AuthenticationError: If credentials are rejected
            TransportError: If SQS cannot be reached
        """
        if not messages:
            return BatchOutcome()
        validate_batch_size(messages, SQS_MAX_BATCH_SIZE)

        entries = [
            {'Id': m.message_id, 'ReceiptHandle': m.receipt_handle, 'VisibilityTimeout': timeout}
            for m in messages
        ]

        try:
            response = self.client.change_message_visibility_batch(
                QueueUrl=queue.url,
                Entries=entries
            )
            outcome = BatchOutcome.from_response(response)

        except ClientError as e:
            if _error_code(e) in AUTH_ERROR_CODES:
                raise self._translate(e, "ChangeMessageVisibilityBatch", queue.name) from e
            logger.error(
                "Visibility change error",
                queue_name=queue.name,
                error_code=_error_code(e),
                error_message=_error_message(e),
                count=len(entries)
            )
            return BatchOutcome.all_failed(
                [m.message_id for m in messages],
                _error_code(e),
                _error_message(e)
            )

        except BotoCoreError as e:
            logger.error("Visibility change error", queue_name=queue.name, error=str(e))
            raise self._translate(e, "ChangeMessageVisibilityBatch", queue.name) from e

        for failure in outcome.failed:
            logger.warning(
                "Message visibility not changed",
                queue_name=queue.name,
                message_id=failure.id,
                timeout=timeout,
                error_code=failure.code,
                error_message=failure.message
            )

        return outcome

    def send_batch(self, queue: QueueRef, outbound: Sequence[OutboundMessage]) -> BatchOutcome:
        """
        Send up to 10 messages in one SendMessageBatch call.

        Callers chunk longer sequences (see Batcher).

        Args:
            queue: Destination queue
            outbound: Payloads to send

        Returns:
            Per-item outcome

        Raises:
            ValueError: If the batch is empty or larger than 10
            BatchCallError: If the call fails as a whole
            AuthenticationError: If credentials are rejected
            TransportError: If SQS cannot be reached
        """
        validate_batch_size(outbound, SQS_MAX_BATCH_SIZE)

        try:
            response = self.client.send_message_batch(
                QueueUrl=queue.url,
                Entries=[message.to_batch_entry() for message in outbound]
            )

        except ClientError as e:
            code = _error_code(e)
            logger.error(
                "Failed to send message batch",
                queue_name=queue.name,
                error_code=code,
                error_message=_error_message(e),
                count=len(outbound)
            )
            if code in AUTH_ERROR_CODES:
                raise self._translate(e, "SendMessageBatch", queue.name) from e
            raise BatchCallError("SendMessageBatch", code, _error_message(e)) from e

        except BotoCoreError as e:
            logger.error("Failed to send message batch", queue_name=queue.name, error=str(e))
            raise self._translate(e, "SendMessageBatch", queue.name) from e

        outcome = BatchOutcome.from_response(response)

        logger.debug(
            "Message batch sent",
            queue_name=queue.name,
            successful=len(outcome.successful),
            failed=len(outcome.failed)
        )

        return outcome
