"""Identifier generation and validation."""

import pytest

from supportchat.infra.id_utils import generate_id, is_valid_id


class TestGenerateId:
    def test_generated_ids_are_valid(self):
        assert is_valid_id(generate_id())

    def test_generated_ids_are_unique(self):
        ids = {generate_id() for _ in range(100)}
        assert len(ids) == 100


class TestIsValidId:
    def test_uppercase_accepted(self):
        assert is_valid_id("3F0C9D2E-8A41-4C55-9B1E-2D7F4A6C8E10")

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "not-a-uuid",
            "3f0c9d2e8a414c559b1e2d7f4a6c8e10",
            "3f0c9d2e-8a41-4c55-9b1e-2d7f4a6c8e10-extra",
            " 3f0c9d2e-8a41-4c55-9b1e-2d7f4a6c8e10",
            None,
            42,
        ],
    )
    def test_rejects_malformed(self, value):
        assert not is_valid_id(value)
