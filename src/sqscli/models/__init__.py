"""
Module: models
Description: Package initialization for pydantic data models.

This package contains all data models used by sqscli:
- Message: A received queue message
- OutboundMessage: A payload for re-submitting a message
- QueueRef: A resolved queue
- BatchOutcome / TransferReport / DrainResult: Operation outcomes

All models are exported here for convenient importing.
"""

from .message import Message, OutboundMessage, QueueRef
from .results import (
    BatchOutcome,
    DrainResult,
    DrainState,
    ItemFailure,
    TransferReport,
)

__all__ = [
    "Message",
    "OutboundMessage",
    "QueueRef",
    "BatchOutcome",
    "DrainResult",
    "DrainState",
    "ItemFailure",
    "TransferReport",
]
