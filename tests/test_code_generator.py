"""Unit tests for membership code generation."""

import re

import pytest

from app.services.code_generator import generate_unique_code

CODE_PATTERN = re.compile(r"^STU-[A-Z0-9]{6}$")


class TestGenerateUniqueCode:
    def test_default_format(self) -> None:
        assert CODE_PATTERN.match(generate_unique_code())

    def test_codes_vary(self) -> None:
        codes = {generate_unique_code() for _ in range(200)}
        assert len(codes) > 195

    def test_custom_prefix_and_length_are_upper_cased(self) -> None:
        code = generate_unique_code(prefix="mov-", length=10)
        assert re.match(r"^MOV-[A-Z0-9]{10}$", code)

    def test_rejects_non_positive_length(self) -> None:
        with pytest.raises(ValueError):
            generate_unique_code(length=0)
