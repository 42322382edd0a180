"""Tests for item id generation."""

from __future__ import annotations

import pytest

from formtree.domain.ids import IdGenerator, validate_item_id


class TestIdGenerator:
    def test_unique_within_session(self) -> None:
        gen = IdGenerator()
        generated = {gen.next_id("field") for _ in range(500)}
        assert len(generated) == 500

    def test_prefix_and_shape(self) -> None:
        gen = IdGenerator(clock=lambda: 36, token=lambda: "abcd")
        assert gen.next_id("section") == "section-10-0001-abcd"
        assert gen.next_id("field") == "field-10-0002-abcd"

    def test_skips_taken_ids(self) -> None:
        gen = IdGenerator(clock=lambda: 0, token=lambda: "t")
        taken = {"field-0-0001-t", "field-0-0002-t"}
        assert gen.next_id("field", taken) == "field-0-0003-t"

    def test_generated_ids_are_valid(self) -> None:
        assert validate_item_id(IdGenerator().next_id("field"))


class TestValidateItemId:
    @pytest.mark.parametrize("item_id", ["field-1", "section_a", "f.1", "A1"])
    def test_valid(self, item_id: str) -> None:
        assert validate_item_id(item_id)

    @pytest.mark.parametrize("item_id", ["", "-lead", "has space", "a:b", "a/b"])
    def test_invalid(self, item_id: str) -> None:
        assert not validate_item_id(item_id)
