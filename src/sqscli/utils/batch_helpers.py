"""
Module: batch_helpers.py
Description: Utility functions for batch operations.

SQS batch APIs accept at most 10 entries per call. These helpers split
arbitrary-length sequences into compliant chunks and check batch sizes
before a request is built.

Key Components:
- chunk_list(): Split a sequence into ordered chunks
- validate_batch_size(): Validate batch size constraints

Dependencies: typing
Author: sqscli Team
"""

from typing import List, Sequence, TypeVar

T = TypeVar('T')


def chunk_list(items: Sequence[T], chunk_size: int) -> List[List[T]]:
    """
    Split a sequence into chunks of at most chunk_size items.

    Order is preserved and only the last chunk may be shorter. An empty
    sequence yields no chunks.

    Args:
        items: Sequence to split into chunks
        chunk_size: Maximum size of each chunk

    Returns:
        List of chunks, where each chunk is a list of items

    Raises:
        ValueError: If chunk_size is not positive

    Example:
        >>> chunk_list([1, 2, 3, 4, 5], 2)
        [[1, 2], [3, 4], [5]]
    """
    if isinstance(items, (str, bytes)):
        raise ValueError("items must be a sequence of items, not a string")
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    items = list(items)
    chunks = []
    for i in range(0, len(items), chunk_size):
        chunks.append(items[i:i + chunk_size])

    return chunks


def validate_batch_size(items: Sequence, max_size: int) -> None:
    """
    Validate that a batch is non-empty and doesn't exceed max_size.

    Args:
        items: Items to validate
        max_size: Maximum allowed batch size

    Raises:
        ValueError: If batch is empty or exceeds max_size
    """
    if not items:
        raise ValueError("batch must contain at least one item")
    if len(items) > max_size:
        raise ValueError(f"batch size cannot exceed {max_size} items")
