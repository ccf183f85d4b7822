"""Exception hierarchy for sqscli."""

from typing import List, Optional


class SqsCliError(Exception):
    """Base exception for all sqscli errors."""


class ConfigurationError(SqsCliError):
    """Raised when configuration or credentials are invalid or missing."""


class TransportError(SqsCliError):
    """Raised when the queue service cannot be reached."""


class AuthenticationError(TransportError):
    """Raised when the queue service rejects the supplied credentials."""


class QueueNotFoundError(TransportError):
    """Raised when a queue name cannot be resolved to a URL."""

    def __init__(self, queue_name: str, detail: str = ""):
        self.queue_name = queue_name
        message = f"Error finding queue {queue_name}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class BatchCallError(SqsCliError):
    """Raised when a whole batch request fails at the call level."""

    def __init__(self, operation: str, code: str, message: str):
        self.operation = operation
        self.code = code
        super().__init__(f"{operation} failed ({code}): {message}")


class ItemValidationError(SqsCliError):
    """Base for errors that fail a single message, not the run."""

    def __init__(self, message_id: str, message: str):
        self.message_id = message_id
        super().__init__(f"message {message_id}: {message}")


class MissingAttributeError(ItemValidationError):
    """Raised when a message lacks an attribute required to re-submit it."""

    def __init__(self, message_id: str, attribute: str):
        self.attribute = attribute
        super().__init__(message_id, f"missing required attribute {attribute}")


class MessageAttributeLimitError(ItemValidationError):
    """Raised when a re-submitted message would carry too many attributes."""

    def __init__(self, message_id: str, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(
            message_id,
            f"{count} message attributes exceed the limit of {limit}"
        )


class TransferError(SqsCliError):
    """
    Aggregate error for a failed transfer to a destination queue.

    Raised (or attached to a drain result) when one or more chunks or
    items could not be sent. Messages named here may already have been
    deleted from the source queue.
    """

    def __init__(
        self,
        queue_name: str,
        chunk_errors: Optional[List[str]] = None,
        item_errors: Optional[List[str]] = None,
        lost_message_ids: Optional[List[str]] = None
    ):
        self.queue_name = queue_name
        self.chunk_errors = list(chunk_errors or [])
        self.item_errors = list(item_errors or [])
        self.lost_message_ids = list(lost_message_ids or [])

        parts = [f"There were errors re-adding messages to {queue_name}"]
        if self.chunk_errors:
            parts.append(f"{len(self.chunk_errors)} failed batch(es): " + "; ".join(self.chunk_errors))
        if self.item_errors:
            parts.append(f"{len(self.item_errors)} failed message(s): " + "; ".join(self.item_errors))
        super().__init__(". ".join(parts))
