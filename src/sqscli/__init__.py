"""
Package: sqscli
Description: Drain Amazon SQS queues to CSV or redrive them to another queue.
"""

__version__ = "0.3.0"
