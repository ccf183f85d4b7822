"""
Module: test_ids.py
Description: Unit tests for deduplication id generation.
"""

import re
from unittest.mock import patch

from sqscli.utils.ids import DeduplicationIdGenerator, new_uuid


class TestNewUuid:
    """Test cases for new_uuid."""

    def test_hyphenless_format(self):
        value = new_uuid()

        assert re.fullmatch(r"[0-9a-f]{32}", value)
        # Version nibble and RFC 4122 variant bits
        assert value[12] == "4"
        assert value[16] in "89ab"

    def test_hyphenated_format(self):
        value = new_uuid(hyphenated=True)

        assert re.fullmatch(
            r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}",
            value
        )

    def test_values_differ(self):
        assert len({new_uuid() for _ in range(100)}) == 100


class TestDeduplicationIdGenerator:
    """Test cases for DeduplicationIdGenerator."""

    def test_never_reissues_an_observed_value(self):
        generator = DeduplicationIdGenerator()
        generator.observe(["a" * 32])

        with patch("sqscli.utils.ids.new_uuid", side_effect=["a" * 32, "b" * 32]):
            assert generator() == "b" * 32

    def test_never_reissues_its_own_value(self):
        generator = DeduplicationIdGenerator()

        with patch("sqscli.utils.ids.new_uuid", side_effect=["c" * 32, "c" * 32, "d" * 32]):
            assert generator() == "c" * 32
            assert generator() == "d" * 32

    def test_hyphenated_ids(self):
        generator = DeduplicationIdGenerator(hyphenated=True)

        assert generator().count("-") == 4
