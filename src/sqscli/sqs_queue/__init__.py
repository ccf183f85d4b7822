"""
Package: sqs_queue
Description: SQS transport for draining and re-sending messages.

Provides a synchronous boto3-backed transport that receives, deletes
and sends messages in batches and resolves queue names.
"""

from .sqs import SQSTransport

__all__ = ["SQSTransport"]
