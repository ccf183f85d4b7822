"""
Module: conftest.py
Description: Shared pytest fixtures for sqscli tests.

Provides settings, a moto-backed SQS client and transport, standard and
FIFO queues, and message factories. Uses moto for AWS service mocking
to enable fast, isolated tests.
"""

import itertools

import boto3
import pytest
from moto import mock_aws

from sqscli.config.settings import Settings
from sqscli.models.message import Message
from sqscli.sqs_queue.sqs import SQSTransport

REGION = "us-east-1"


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real AWS account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    monkeypatch.setenv("AWS_REGION", REGION)
    monkeypatch.setenv("SQS_DELAY_SECONDS", "0")


@pytest.fixture
def test_settings():
    """
    Provide test configuration settings.

    Disables .env loading and uses no delivery delay so re-sent
    messages are immediately receivable.
    """
    return Settings(
        _env_file=None,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        aws_region=REGION,
        log_level="DEBUG",
        sqs_delay_seconds=0,
    )


@pytest.fixture
def sqs_client(aws_credentials):
    """Provide a boto3 SQS client backed by moto."""
    with mock_aws():
        yield boto3.client("sqs", region_name=REGION)


@pytest.fixture
def transport(sqs_client):
    """Provide an SQSTransport over the mocked client."""
    return SQSTransport(sqs_client, visibility_timeout=10, wait_time_seconds=0)


@pytest.fixture
def standard_queue(sqs_client, transport):
    """Create a standard queue and return its QueueRef."""
    sqs_client.create_queue(QueueName="test-standard")
    return transport.resolve_queue("test-standard")


@pytest.fixture
def destination_queue(sqs_client, transport):
    """Create a second standard queue used as redrive destination."""
    sqs_client.create_queue(QueueName="test-destination")
    return transport.resolve_queue("test-destination")


@pytest.fixture
def fifo_queue(sqs_client, transport):
    """Create a FIFO queue and return its QueueRef."""
    sqs_client.create_queue(
        QueueName="test-ordered.fifo",
        Attributes={"FifoQueue": "true"}
    )
    return transport.resolve_queue("test-ordered.fifo")


@pytest.fixture
def fifo_destination_queue(sqs_client, transport):
    """Create a second FIFO queue used as redrive destination."""
    sqs_client.create_queue(
        QueueName="test-ordered-destination.fifo",
        Attributes={"FifoQueue": "true"}
    )
    return transport.resolve_queue("test-ordered-destination.fifo")


@pytest.fixture
def make_message():
    """
    Factory for Message instances.

    Ordered messages carry every FIFO system attribute unless
    overridden; pass an attribute as None to leave it out.
    """
    counter = itertools.count(1)

    def _make(body="hello world", ordered=False, **attributes):
        n = next(counter)
        defaults = {
            "SentTimestamp": "1700000000000",
            "SenderId": "AIDAEXAMPLE",
            "ApproximateReceiveCount": "1",
            "ApproximateFirstReceiveTimestamp": "1700000000500",
        }
        if ordered:
            defaults.update({
                "MessageGroupId": "g1",
                "MessageDeduplicationId": f"d{n}",
                "SequenceNumber": str(n),
            })
        defaults.update(attributes)
        return Message(
            message_id=f"msg-{n}",
            body=body,
            receipt_handle=f"rh-{n}",
            attributes={k: v for k, v in defaults.items() if v is not None},
        )

    return _make


@pytest.fixture
def drain_queue(sqs_client):
    """Provide a helper that receives and deletes everything visible on a queue."""

    def _drain(queue_url):
        messages = []
        while True:
            response = sqs_client.receive_message(
                QueueUrl=queue_url,
                AttributeNames=["All"],
                MessageAttributeNames=["All"],
                MaxNumberOfMessages=10,
                WaitTimeSeconds=0,
            )
            batch = response.get("Messages", [])
            if not batch:
                return messages
            messages.extend(batch)
            sqs_client.delete_message_batch(
                QueueUrl=queue_url,
                Entries=[
                    {"Id": m["MessageId"], "ReceiptHandle": m["ReceiptHandle"]}
                    for m in batch
                ],
            )

    return _drain
