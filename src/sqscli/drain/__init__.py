"""
Package: drain
Description: Drain-and-transfer pipeline.

Receives messages from a source queue, forwards them to sinks (CSV
output or a destination queue), acknowledges them, and re-sends them
in chunks under the SQS batch limit.
"""

from .attributes import AttributeMapper
from .batcher import Batcher
from .drainer import DeletePolicy, Drainer
from .sinks import CsvSink, MessageSink, QueueSink

__all__ = [
    "AttributeMapper",
    "Batcher",
    "CsvSink",
    "DeletePolicy",
    "Drainer",
    "MessageSink",
    "QueueSink",
]
