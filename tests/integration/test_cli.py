"""
Module: test_cli.py
Description: Integration tests for the sqscli command line.

Runs main() end to end against moto and checks stdout, stderr and
exit codes.
"""

from unittest.mock import patch

import pytest
from botocore.client import BaseClient
from botocore.exceptions import ClientError

from sqscli.main import build_parser, main


@pytest.fixture
def no_dotenv(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)


class TestCli:
    """Test cases for main()."""

    def test_no_command_prints_usage(self, capsys):
        assert main([]) == 0

        assert "usage: sqscli" in capsys.readouterr().out

    def test_missing_required_argument(self):
        with pytest.raises(SystemExit) as exc_info:
            main(["redrive", "-from", "only-source"])

        assert exc_info.value.code != 0

    def test_missing_credentials(self, monkeypatch, no_dotenv, capsys):
        monkeypatch.delenv("AWS_ACCESS_KEY_ID", raising=False)
        monkeypatch.delenv("AWS_SECRET_ACCESS_KEY", raising=False)

        assert main(["drain-to-table", "-queue", "anything"]) == 1

        assert "Missing connection credentials" in capsys.readouterr().err

    def test_parser_accepts_original_option_spellings(self):
        parser = build_parser()

        table = parser.parse_args(["qtocsv", "-q", "orders"])
        move = parser.parse_args(["redrive", "--from", "dlq", "--to", "orders", "--confirm-before-delete"])

        assert table.queue == "orders"
        assert table.consume is False
        assert (move.source, move.destination, move.confirm_before_delete) == ("dlq", "orders", True)

    def test_drain_to_table(self, sqs_client, standard_queue, no_dotenv, capsys):
        sqs_client.send_message(QueueUrl=standard_queue.url, MessageBody='say "hi"')

        assert main(["drain-to-table", "-queue", "test-standard"]) == 0

        out = capsys.readouterr().out.splitlines()
        assert out[0] == "Body,Sent"
        assert out[1].startswith('"say \\"hi\\"","')

    def test_qtocsv_alias(self, sqs_client, fifo_queue, no_dotenv, capsys):
        sqs_client.send_message(
            QueueUrl=fifo_queue.url,
            MessageBody="ordered",
            MessageGroupId="g1",
            MessageDeduplicationId="d1"
        )

        assert main(["qtocsv", "-q", "test-ordered.fifo", "--consume"]) == 0

        out = capsys.readouterr().out.splitlines()
        assert out[0].startswith("Body,Message Group ID")
        assert out[1].startswith('"ordered","g1","d1",')

    def test_redrive(self, sqs_client, standard_queue, destination_queue, drain_queue, no_dotenv, capsys):
        for i in range(4):
            sqs_client.send_message(QueueUrl=standard_queue.url, MessageBody=f"m{i}")

        assert main(["redrive", "-from", "test-standard", "-to", "test-destination"]) == 0

        assert capsys.readouterr().out == ""
        assert len(drain_queue(destination_queue.url)) == 4

    def test_confirmed_redrive_into_the_source_exits_non_zero(
        self, sqs_client, standard_queue, no_dotenv, capsys
    ):
        code = main(["redrive", "--from", "test-standard", "--to", "test-standard", "--confirm-before-delete"])

        assert code == 1
        assert "Error: --confirm-before-delete cannot be used" in capsys.readouterr().err

    def test_unknown_queue(self, sqs_client, no_dotenv, capsys):
        assert main(["drain-to-table", "-queue", "missing"]) == 1

        assert "Error finding queue missing" in capsys.readouterr().err

    def test_transfer_failure_exits_non_zero(
        self, sqs_client, standard_queue, destination_queue, no_dotenv, capsys
    ):
        sqs_client.send_message(QueueUrl=standard_queue.url, MessageBody="m")
        failure = ClientError(
            error_response={'Error': {'Code': 'InternalError', 'Message': 'Test error'}},
            operation_name='SendMessageBatch'
        )

        original = BaseClient._make_api_call

        def fail_sends(client, operation, params):
            if operation == "SendMessageBatch":
                raise failure
            return original(client, operation, params)

        with patch.object(BaseClient, "_make_api_call", new=fail_sends):
            code = main(["redrive", "-from", "test-standard", "-to", "test-destination"])

        assert code == 1
        assert "There were errors re-adding messages to test-destination" in capsys.readouterr().err
