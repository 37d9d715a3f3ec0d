"""Tests for app_transfer/codec.py – UTF-8 conversion."""

from __future__ import annotations

import pytest

from app_transfer.codec import to_binary, to_text
from app_transfer.errors import EncodingError


class TestToBinary:
    def test_encodes_utf8(self) -> None:
        assert to_binary("prompt => 'Größe'") == "prompt => 'Größe'".encode("utf-8")

    def test_empty(self) -> None:
        assert to_binary("") == b""


class TestToText:
    def test_decodes_utf8(self) -> None:
        assert to_text("café ☕".encode("utf-8")) == "café ☕"

    def test_preserves_crlf_and_bom(self) -> None:
        """No newline translation, no BOM stripping."""
        raw = b"\xef\xbb\xbfline1\r\nline2\r\n"
        assert to_binary(to_text(raw)) == raw

    def test_invalid_bytes_raise(self) -> None:
        with pytest.raises(EncodingError, match="not valid UTF-8"):
            to_text(b"\xff\xfe\xfa")

    def test_error_names_entry(self) -> None:
        with pytest.raises(EncodingError) as exc_info:
            to_text(b"\xc3\x28", entry="f101/install.sql")
        assert exc_info.value.entry == "f101/install.sql"
        assert "f101/install.sql" in str(exc_info.value)
