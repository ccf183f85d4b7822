"""
Module: results.py
Description: Outcome models for batch calls, transfers and drain runs.

Key Components:
- ItemFailure: One failed entry of a batch call
- BatchOutcome: Per-item outcome of a DeleteMessageBatch/SendMessageBatch call
- TransferReport: Aggregated outcome of sending messages to a queue
- DrainState / DrainResult: Terminal state and counters of a drain run

Dependencies: pydantic, enum, typing
Author: sqscli Team
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict

from sqscli.exceptions import SqsCliError


class ItemFailure(BaseModel):
    """A single failed entry reported by a batch call or by validation."""

    id: str = Field(..., description="Entry id (source message id)")
    code: str = Field(default="", description="Error code")
    message: str = Field(default="", description="Error description")
    sender_fault: bool = Field(default=False, description="Caller-side error")

    def __str__(self) -> str:
        return f"{self.id}: {self.code} {self.message}".strip()


class BatchOutcome(BaseModel):
    """Per-item outcome of one batch call."""

    successful: List[str] = Field(default_factory=list, description="Succeeded entry ids")
    failed: List[ItemFailure] = Field(default_factory=list, description="Failed entries")

    @classmethod
    def from_response(cls, response: Dict[str, Any]) -> "BatchOutcome":
        """Build an outcome from a boto3 batch response."""
        return cls(
            successful=[entry["Id"] for entry in response.get("Successful", [])],
            failed=[
                ItemFailure(
                    id=entry["Id"],
                    code=entry.get("Code", ""),
                    message=entry.get("Message", ""),
                    sender_fault=entry.get("SenderFault", False),
                )
                for entry in response.get("Failed", [])
            ],
        )

    @classmethod
    def all_failed(cls, ids: List[str], code: str, message: str) -> "BatchOutcome":
        """Outcome for a call that failed as a whole."""
        return cls(failed=[ItemFailure(id=i, code=code, message=message) for i in ids])

    @property
    def failed_ids(self) -> List[str]:
        return [failure.id for failure in self.failed]


class TransferReport(BaseModel):
    """
    Aggregated outcome of sending a sequence of messages to a queue.

    Chunk errors describe SendMessageBatch calls that failed as a whole;
    the ids of the messages in those chunks are listed in failed_ids.
    Item errors describe single messages that failed validation or were
    rejected inside an otherwise successful call.
    """

    destination: str = Field(..., description="Destination queue name")
    transferred_ids: List[str] = Field(default_factory=list)
    item_errors: List[ItemFailure] = Field(default_factory=list)
    chunk_errors: List[str] = Field(default_factory=list)
    failed_ids: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.item_errors and not self.chunk_errors

    def merge(self, other: "TransferReport") -> None:
        """Fold another report for the same destination into this one."""
        self.transferred_ids.extend(other.transferred_ids)
        self.item_errors.extend(other.item_errors)
        self.chunk_errors.extend(other.chunk_errors)
        self.failed_ids.extend(other.failed_ids)


class DrainState(str, Enum):
    """States of a drain run."""

    DRAINING = "draining"
    EMPTY = "empty"
    ABORTED = "aborted"


class DrainResult(BaseModel):
    """Terminal state and counters of one drain run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    source: str = Field(..., description="Source queue name")
    state: DrainState = Field(default=DrainState.DRAINING)
    batches: int = Field(default=0, ge=0)
    received: int = Field(default=0, ge=0)
    rendered: int = Field(default=0, ge=0)
    deleted: int = Field(default=0, ge=0)
    duplicates: int = Field(default=0, ge=0)
    held: int = Field(
        default=0,
        ge=0,
        description="Messages left in the source because they could not be transferred"
    )
    delete_failures: List[ItemFailure] = Field(default_factory=list)
    transfers: List[TransferReport] = Field(default_factory=list)
    error: Optional[SqsCliError] = Field(default=None)

    @property
    def succeeded(self) -> bool:
        return self.state == DrainState.EMPTY
