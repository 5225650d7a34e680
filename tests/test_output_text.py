"""
Tests for process output decoding helpers
"""

from wslstack.utils.output_text import (
    clean_lines,
    decode_output,
    looks_like_utf16,
    strip_nulls,
)


class TestDecodeOutput:
    def test_utf8_output(self) -> None:
        assert decode_output(b"Ubuntu-22.04\n") == "Ubuntu-22.04\n"

    def test_utf16le_without_bom(self) -> None:
        data = "Default Version: 2".encode("utf-16-le")
        assert looks_like_utf16(data) is True
        assert decode_output(data) == "Default Version: 2"

    def test_utf16le_with_bom(self) -> None:
        data = b"\xff\xfe" + "Ubuntu".encode("utf-16-le")
        assert decode_output(data) == "Ubuntu"

    def test_empty_output(self) -> None:
        assert decode_output(b"") == ""

    def test_invalid_utf8_is_replaced(self) -> None:
        assert decode_output(b"ok \xff\xfd done").startswith("ok ")

    def test_plain_ascii_is_not_utf16(self) -> None:
        assert looks_like_utf16(b"which docker") is False


class TestCleaning:
    def test_strip_nulls(self) -> None:
        assert strip_nulls("U\x00b\x00u\x00n\x00t\x00u\x00") == "Ubuntu"

    def test_strip_bom(self) -> None:
        assert strip_nulls("\ufeffUbuntu") == "Ubuntu"

    def test_clean_lines_removes_carriage_returns(self) -> None:
        assert clean_lines("Ubuntu-22.04\r\n docker-desktop \r\n") == [
            "Ubuntu-22.04",
            "docker-desktop",
            "",
        ]

    def test_clean_lines_handles_nul_interleaving(self) -> None:
        text = "\x00".join("Ubuntu-22.04\r\n") + "\x00"
        assert "Ubuntu-22.04" in clean_lines(text)
