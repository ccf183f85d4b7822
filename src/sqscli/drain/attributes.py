"""
Module: attributes.py
Description: Builds outbound payloads from received messages.

System attributes (SentTimestamp, SequenceNumber, SenderId, ...) are
assigned by SQS and cannot be set on submission, so they are carried
over as plain String message attributes. FIFO messages keep their group
id and receive a freshly minted deduplication id.
"""

from typing import Any, Dict, List, Optional

from sqscli.exceptions import MessageAttributeLimitError, MissingAttributeError
from sqscli.models.message import (
    APPROXIMATE_FIRST_RECEIVE_TIMESTAMP,
    APPROXIMATE_RECEIVE_COUNT,
    MESSAGE_GROUP_ID,
    SENDER_ID,
    SENT_TIMESTAMP,
    SEQUENCE_NUMBER,
    Message,
    OutboundMessage,
)
from sqscli.utils.ids import DeduplicationIdGenerator

# SQS accepts at most 10 message attributes per message
MAX_MESSAGE_ATTRIBUTES = 10

DEFAULT_DELAY_SECONDS = 1

STANDARD_COPIED_ATTRIBUTES: List[str] = [SENT_TIMESTAMP]

ORDERED_COPIED_ATTRIBUTES: List[str] = [
    SENT_TIMESTAMP,
    SEQUENCE_NUMBER,
    MESSAGE_GROUP_ID,
    SENDER_ID,
    APPROXIMATE_FIRST_RECEIVE_TIMESTAMP,
    APPROXIMATE_RECEIVE_COUNT,
]


def _string_attribute(value: str) -> Dict[str, str]:
    return {'DataType': 'String', 'StringValue': value}


class AttributeMapper:
    """
    Translate a received Message into an OutboundMessage.

    Args:
        delay_seconds: Delivery delay for standard queues, which keeps a
            message re-sent to its own source queue from being received
            again by the same drain
        dedup_ids: Run-scoped deduplication id generator
    """

    def __init__(
        self,
        delay_seconds: int = DEFAULT_DELAY_SECONDS,
        dedup_ids: Optional[DeduplicationIdGenerator] = None
    ):
        if delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")

        self.delay_seconds = delay_seconds
        self.dedup_ids = dedup_ids if dedup_ids is not None else DeduplicationIdGenerator()

    def _copy_attributes(self, message: Message, names: List[str]) -> Dict[str, Dict[str, Any]]:
        """Copy user attributes, then system attributes as String attributes."""
        attributes: Dict[str, Dict[str, Any]] = dict(message.message_attributes)

        for name in names:
            value = message.attribute(name)
            if value is None:
                raise MissingAttributeError(message.message_id, name)
            attributes[name] = _string_attribute(value)

        if len(attributes) > MAX_MESSAGE_ATTRIBUTES:
            raise MessageAttributeLimitError(
                message.message_id,
                len(attributes),
                MAX_MESSAGE_ATTRIBUTES
            )

        return attributes

    def validate(self, message: Message, ordered: bool) -> None:
        """
        Check that map() would accept a message, without minting an id.

        Raises:
            MissingAttributeError: If a required attribute is absent
            MessageAttributeLimitError: If too many attributes would be sent
        """
        if ordered:
            self._group_id(message)
            self._copy_attributes(message, ORDERED_COPIED_ATTRIBUTES)
        else:
            self._copy_attributes(message, STANDARD_COPIED_ATTRIBUTES)

    @staticmethod
    def _group_id(message: Message) -> str:
        group_id = message.group_id
        if group_id is None:
            raise MissingAttributeError(message.message_id, MESSAGE_GROUP_ID)
        return group_id

    def map(self, message: Message, ordered: bool) -> OutboundMessage:
        """
        Build the outbound payload for one message.

        Args:
            message: Received message
            ordered: True when the destination is a FIFO queue

        Returns:
            New OutboundMessage carrying the same body

        Raises:
            MissingAttributeError: If a required attribute is absent
            MessageAttributeLimitError: If too many attributes would be sent
        """
        if ordered:
            return self.map_ordered(message)
        return self.map_standard(message)

    def map_standard(self, message: Message) -> OutboundMessage:
        return OutboundMessage(
            entry_id=message.message_id,
            body=message.body,
            message_attributes=self._copy_attributes(message, STANDARD_COPIED_ATTRIBUTES),
            delay_seconds=self.delay_seconds,
        )

    def map_ordered(self, message: Message) -> OutboundMessage:
        group_id = self._group_id(message)
        attributes = self._copy_attributes(message, ORDERED_COPIED_ATTRIBUTES)

        if message.deduplication_id:
            self.dedup_ids.observe([message.deduplication_id])

        return OutboundMessage(
            entry_id=message.message_id,
            body=message.body,
            message_attributes=attributes,
            group_id=group_id,
            deduplication_id=self.dedup_ids(),
        )
