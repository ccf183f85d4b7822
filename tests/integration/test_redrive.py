"""
Module: test_redrive.py
Description: Integration tests for the redrive command.

Moves messages between moto queues under both delete policies and
checks bodies, FIFO group ids and deduplication ids on the destination.
"""

from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError

from sqscli.exceptions import ConfigurationError, QueueNotFoundError, TransferError
from sqscli.main import redrive
from sqscli.models.results import DrainState


def send_standard(sqs_client, queue_url, count):
    bodies = [f"payload {i}" for i in range(count)]
    for body in bodies:
        sqs_client.send_message(QueueUrl=queue_url, MessageBody=body)
    return bodies


class TestRedrive:
    """Test cases for redriving one queue into another."""

    @pytest.mark.parametrize("count", [0, 1, 10, 23])
    def test_standard_redrive_moves_every_message(
        self, sqs_client, transport, test_settings, standard_queue, destination_queue, drain_queue, count
    ):
        bodies = send_standard(sqs_client, standard_queue.url, count)

        result = redrive(transport, test_settings, "test-standard", "test-destination")

        assert result.state == DrainState.EMPTY
        moved = drain_queue(destination_queue.url)
        assert sorted(m["Body"] for m in moved) == sorted(bodies)
        assert drain_queue(standard_queue.url) == []

    def test_confirmed_redrive_moves_every_message(
        self, sqs_client, transport, test_settings, standard_queue, destination_queue, drain_queue
    ):
        bodies = send_standard(sqs_client, standard_queue.url, 15)

        result = redrive(
            transport, test_settings, "test-standard", "test-destination", confirm_before_delete=True
        )

        assert result.state == DrainState.EMPTY
        assert sorted(m["Body"] for m in drain_queue(destination_queue.url)) == sorted(bodies)

    def test_sent_timestamp_travels_as_message_attribute(
        self, sqs_client, transport, test_settings, standard_queue, destination_queue, drain_queue
    ):
        send_standard(sqs_client, standard_queue.url, 1)

        redrive(transport, test_settings, "test-standard", "test-destination")

        moved = drain_queue(destination_queue.url)[0]
        sent = moved["MessageAttributes"]["SentTimestamp"]
        assert sent["DataType"] == "String"
        assert sent["StringValue"].isdigit()

    def test_fifo_redrive_preserves_groups_with_fresh_dedup_ids(
        self, sqs_client, transport, test_settings, fifo_queue, fifo_destination_queue, drain_queue
    ):
        originals = {}
        for group in ("g1", "g2"):
            for i in range(6):
                dedup_id = f"{group}-d{i}"
                sqs_client.send_message(
                    QueueUrl=fifo_queue.url,
                    MessageBody=f"{group} body {i}",
                    MessageGroupId=group,
                    MessageDeduplicationId=dedup_id
                )
                originals[f"{group} body {i}"] = (group, dedup_id)

        result = redrive(transport, test_settings, "test-ordered.fifo", "test-ordered-destination.fifo")

        assert result.state == DrainState.EMPTY
        moved = drain_queue(fifo_destination_queue.url)
        assert sorted(m["Body"] for m in moved) == sorted(originals)
        for m in moved:
            group, dedup_id = originals[m["Body"]]
            assert m["Attributes"]["MessageGroupId"] == group
            assert m["Attributes"]["MessageDeduplicationId"] != dedup_id
            assert m["MessageAttributes"]["MessageGroupId"]["StringValue"] == group
            assert "SequenceNumber" in m["MessageAttributes"]
        assert len({m["Attributes"]["MessageDeduplicationId"] for m in moved}) == len(moved)

    def test_fifo_order_is_kept_within_a_group(
        self, sqs_client, transport, test_settings, fifo_queue, fifo_destination_queue, drain_queue
    ):
        for i in range(12):
            sqs_client.send_message(
                QueueUrl=fifo_queue.url,
                MessageBody=f"step {i}",
                MessageGroupId="g1",
                MessageDeduplicationId=f"d{i}"
            )

        redrive(transport, test_settings, "test-ordered.fifo", "test-ordered-destination.fifo")

        assert [m["Body"] for m in drain_queue(fifo_destination_queue.url)] == [f"step {i}" for i in range(12)]

    def test_standard_to_fifo_keeps_messages_in_source(
        self, sqs_client, transport, test_settings, standard_queue, fifo_destination_queue, drain_queue
    ):
        bodies = send_standard(sqs_client, standard_queue.url, 2)

        result = redrive(transport, test_settings, "test-standard", "test-ordered-destination.fifo")

        assert result.state == DrainState.ABORTED
        assert isinstance(result.error, TransferError)
        assert len(result.error.item_errors) == 2
        assert "MessageGroupId" in str(result.error)
        assert result.error.lost_message_ids == []
        assert result.held == 2
        assert drain_queue(fifo_destination_queue.url) == []
        assert sorted(m["Body"] for m in drain_queue(standard_queue.url)) == sorted(bodies)

    def test_failed_send_aborts_with_aggregate_error(
        self, sqs_client, transport, test_settings, standard_queue, destination_queue
    ):
        send_standard(sqs_client, standard_queue.url, 12)
        failure = ClientError(
            error_response={'Error': {'Code': 'InternalError', 'Message': 'Test error'}},
            operation_name='SendMessageBatch'
        )

        with patch.object(transport.client, 'send_message_batch', side_effect=failure):
            result = redrive(transport, test_settings, "test-standard", "test-destination")

        assert result.state == DrainState.ABORTED
        assert len(result.error.chunk_errors) == 2
        assert len(result.error.lost_message_ids) == 12

    def test_confirmed_failed_send_keeps_source_messages(
        self, sqs_client, transport, test_settings, standard_queue, destination_queue, drain_queue
    ):
        bodies = send_standard(sqs_client, standard_queue.url, 3)
        failure = ClientError(
            error_response={'Error': {'Code': 'InternalError', 'Message': 'Test error'}},
            operation_name='SendMessageBatch'
        )

        with patch.object(transport.client, 'send_message_batch', side_effect=failure):
            result = redrive(
                transport, test_settings, "test-standard", "test-destination", confirm_before_delete=True
            )

        assert result.state == DrainState.ABORTED
        assert result.error.lost_message_ids == []
        # Held during the run, visible again once it is over
        assert sorted(m["Body"] for m in drain_queue(standard_queue.url)) == sorted(bodies)

    def test_confirmed_redrive_into_the_source_is_rejected(self, transport, test_settings, standard_queue):
        with pytest.raises(ConfigurationError, match="same queue"):
            redrive(transport, test_settings, "test-standard", "test-standard", confirm_before_delete=True)

    def test_unknown_destination(self, transport, test_settings, standard_queue):
        with pytest.raises(QueueNotFoundError):
            redrive(transport, test_settings, "test-standard", "does-not-exist")
