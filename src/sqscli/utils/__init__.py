"""
Module: utils
Description: Package initialization for utility functions.

Current utilities:
- logger: Structured logging configuration and helpers
- batch_helpers: List chunking under the SQS batch limit
- ids: Deduplication id generation
"""

__all__ = []
