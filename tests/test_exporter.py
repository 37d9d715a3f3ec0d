"""Tests for app_transfer/exporter.py – filter parsing and export orchestration."""

from __future__ import annotations

import hashlib
import io
import zipfile
from unittest.mock import MagicMock

import pytest

from app_transfer.errors import DefinitionNotFound, InvalidIdentifier, StoreError
from app_transfer.exporter import export_application, parse_application_id, parse_components
from app_transfer.schema import ExportFile, FileCollection
from app_transfer.transfer_mode import TransferMode

# ── parse_components ─────────────────────────────────────────────────────────


class TestParseComponents:
    def test_trims_and_splits(self) -> None:
        assert parse_components(" PAGE:1, PAGE:2 ") == {"PAGE:1", "PAGE:2"}

    def test_empty_string_is_no_filter(self) -> None:
        assert parse_components("") is None

    def test_none_is_no_filter(self) -> None:
        assert parse_components(None) is None

    def test_only_commas_is_no_filter(self) -> None:
        assert parse_components(" , ,") is None

    def test_duplicates_collapse(self) -> None:
        assert parse_components("PAGE:1,PAGE:1") == frozenset({"PAGE:1"})


# ── parse_application_id ─────────────────────────────────────────────────────


class TestParseApplicationId:
    def test_numeric(self) -> None:
        assert parse_application_id("101") == 101

    @pytest.mark.parametrize("value", [None, "", "  ", "f101", "10.5"])
    def test_invalid(self, value: str | None) -> None:
        with pytest.raises(InvalidIdentifier):
            parse_application_id(value)


# ── export_application ───────────────────────────────────────────────────────


def _mock_store(files: FileCollection) -> MagicMock:
    store = MagicMock()
    store.get_definition.return_value = files
    return store


class TestExportApplication:
    def test_single_document(self) -> None:
        store = _mock_store(FileCollection(files=[ExportFile(name="f101.sql", contents="prompt")]))

        result = export_application(store, "101")

        assert result.filename == "101.sql"
        assert result.media_type == "application/sql"
        assert result.mode is TransferMode.SINGLE_DOCUMENT
        assert result.content == b"prompt"
        store.get_definition.assert_called_once_with(None, 101, components=None, split=False)

    def test_archive_with_filter(self, split_files: FileCollection) -> None:
        store = _mock_store(split_files)

        result = export_application(store, "101.zip", "PAGE:1,PAGE:2")

        store.get_definition.assert_called_once_with(
            None, 101, components=frozenset({"PAGE:1", "PAGE:2"}), split=True
        )
        assert result.filename == "101.zip"
        assert result.media_type == "application/zip"
        assert result.content_length > 0
        with zipfile.ZipFile(io.BytesIO(result.content)) as zf:
            assert zf.namelist() == split_files.names()

    def test_media_type_hint_overrides_suffix(self, split_files: FileCollection) -> None:
        store = _mock_store(split_files)
        result = export_application(store, "101.sql", media_type_hint="application/zip")
        assert result.filename == "101.zip"
        assert store.get_definition.call_args.kwargs["split"] is True

    def test_filtered_single_document_is_supported(self) -> None:
        store = _mock_store(FileCollection(files=[ExportFile(name="f101.sql", contents="p")]))
        result = export_application(store, "101.sql", "PAGE:1")
        assert result.filename == "101.sql"
        store.get_definition.assert_called_once_with(
            None, 101, components=frozenset({"PAGE:1"}), split=False
        )

    def test_sha256_matches_content(self) -> None:
        store = _mock_store(FileCollection(files=[ExportFile(name="f101.sql", contents="abc")]))
        result = export_application(store, "101")
        assert result.sha256 == hashlib.sha256(b"abc").hexdigest()

    def test_non_numeric_id_raises_before_store(self) -> None:
        store = MagicMock()
        with pytest.raises(InvalidIdentifier):
            export_application(store, "abc.zip")
        store.get_definition.assert_not_called()

    def test_single_document_with_many_files_raises(self, split_files: FileCollection) -> None:
        store = _mock_store(split_files)
        with pytest.raises(StoreError, match="3 files"):
            export_application(store, "101.sql")

    def test_store_error_propagates(self) -> None:
        store = MagicMock()
        store.get_definition.side_effect = DefinitionNotFound("Application 101 not found.")
        with pytest.raises(DefinitionNotFound):
            export_application(store, "101.zip")

    def test_caller_scopes_read_to_default_workspace(self, installed_store) -> None:
        result = export_application(installed_store, "101.zip", caller="alice")
        assert result.filename == "101.zip"

    def test_explicit_workspace_without_app_not_found(self, installed_store) -> None:
        with pytest.raises(DefinitionNotFound):
            export_application(installed_store, "101.zip", workspace="hr")
