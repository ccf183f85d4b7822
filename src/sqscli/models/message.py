"""
Module: message.py
Description: Queue and message data models for sqscli.

Defines the received Message model built from a ReceiveMessage
response, the OutboundMessage model used to re-submit a message through
SendMessageBatch, and the QueueRef model for a resolved queue.

Key Components:
- Message: A received message with its system and user attributes
- OutboundMessage: A new payload built from a Message for re-submission
- QueueRef: Queue name, URL and ordering mode
- Attribute name constants for SQS system attributes

Dependencies: pydantic, typing
Author: sqscli Team
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict

# System attributes assigned by SQS on receipt
SENT_TIMESTAMP = "SentTimestamp"
SENDER_ID = "SenderId"
APPROXIMATE_RECEIVE_COUNT = "ApproximateReceiveCount"
APPROXIMATE_FIRST_RECEIVE_TIMESTAMP = "ApproximateFirstReceiveTimestamp"

# FIFO-only system attributes
MESSAGE_GROUP_ID = "MessageGroupId"
MESSAGE_DEDUPLICATION_ID = "MessageDeduplicationId"
SEQUENCE_NUMBER = "SequenceNumber"


class QueueRef(BaseModel):
    """
    A queue resolved to its URL.

    The ordering mode is looked up once when the queue is resolved and
    assumed immutable for the duration of a run.

    Attributes:
        name: Queue name as given by the user
        url: Queue URL returned by GetQueueUrl
        ordered: True for FIFO queues
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Queue name")
    url: str = Field(..., min_length=1, description="Queue URL")
    ordered: bool = Field(default=False, description="FIFO queue")


class Message(BaseModel):
    """
    A message received from a queue.

    The body is kept byte-exact. Attribute accessors return None for
    absent attributes instead of raising.

    Attributes:
        message_id: Identifier assigned by SQS
        body: Raw message body
        receipt_handle: Token required to delete this delivery
        attributes: System attributes (name -> string value)
        message_attributes: User message attributes (name -> SQS value dict)
    """

    message_id: str = Field(..., min_length=1, description="SQS message id")
    body: str = Field(default="", description="Raw message body")
    receipt_handle: str = Field(..., min_length=1, description="Receipt handle")
    attributes: Dict[str, str] = Field(
        default_factory=dict,
        description="System attributes"
    )
    message_attributes: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="User message attributes"
    )

    @classmethod
    def from_sqs(cls, raw: Dict[str, Any]) -> "Message":
        """
        Build a Message from one entry of a ReceiveMessage response.

        Args:
            raw: Message dictionary as returned by boto3

        Returns:
            Message instance
        """
        return cls(
            message_id=raw["MessageId"],
            body=raw.get("Body", ""),
            receipt_handle=raw["ReceiptHandle"],
            attributes=raw.get("Attributes") or {},
            message_attributes=raw.get("MessageAttributes") or {},
        )

    def attribute(self, name: str) -> Optional[str]:
        """Return a system attribute, or None if absent or empty."""
        value = self.attributes.get(name)
        return value if value else None

    @property
    def sent_timestamp(self) -> Optional[str]:
        return self.attribute(SENT_TIMESTAMP)

    @property
    def sender_id(self) -> Optional[str]:
        return self.attribute(SENDER_ID)

    @property
    def approximate_receive_count(self) -> Optional[str]:
        return self.attribute(APPROXIMATE_RECEIVE_COUNT)

    @property
    def approximate_first_receive_timestamp(self) -> Optional[str]:
        return self.attribute(APPROXIMATE_FIRST_RECEIVE_TIMESTAMP)

    @property
    def group_id(self) -> Optional[str]:
        return self.attribute(MESSAGE_GROUP_ID)

    @property
    def deduplication_id(self) -> Optional[str]:
        return self.attribute(MESSAGE_DEDUPLICATION_ID)

    @property
    def sequence_number(self) -> Optional[str]:
        return self.attribute(SEQUENCE_NUMBER)


class OutboundMessage(BaseModel):
    """
    A message payload ready for SendMessageBatch.

    Always a new object built from a received Message; the received
    wire object is never re-sent as is.
    """

    entry_id: str = Field(
        ...,
        pattern=r"^[A-Za-z0-9_-]{1,80}$",
        description="Batch entry id (source message id)"
    )
    body: str = Field(..., description="Message body")
    message_attributes: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Message attributes to set"
    )
    delay_seconds: Optional[int] = Field(
        default=None,
        ge=0,
        le=900,
        description="Per-message delivery delay (standard queues only)"
    )
    group_id: Optional[str] = Field(default=None, description="FIFO message group id")
    deduplication_id: Optional[str] = Field(
        default=None,
        description="FIFO deduplication id"
    )

    def to_batch_entry(self) -> Dict[str, Any]:
        """
        Render a SendMessageBatch request entry.

        Returns:
            Entry dictionary, omitting unset optional fields
        """
        entry: Dict[str, Any] = {
            "Id": self.entry_id,
            "MessageBody": self.body,
        }
        if self.message_attributes:
            entry["MessageAttributes"] = self.message_attributes
        if self.delay_seconds is not None:
            entry["DelaySeconds"] = self.delay_seconds
        if self.group_id is not None:
            entry["MessageGroupId"] = self.group_id
        if self.deduplication_id is not None:
            entry["MessageDeduplicationId"] = self.deduplication_id
        return entry
