"""Tests for app_transfer/importer.py – import orchestration."""

from __future__ import annotations

import io
import zipfile
from unittest.mock import MagicMock

import pytest

from app_transfer.archive import pack
from app_transfer.errors import (
    ArchiveFormatError,
    EncodingError,
    InstallError,
    InvalidPayload,
    ScopeResolutionError,
)
from app_transfer.importer import SINGLE_DOCUMENT_NAME, build_collection, import_application
from app_transfer.schema import FileCollection, TargetDescriptor
from app_transfer.transfer_mode import TransferMode


def _make_zip(files: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in files.items():
            zf.writestr(name, data)
    return buf.getvalue()


def _mock_store(installed_id: int = 101) -> MagicMock:
    store = MagicMock()
    store.assigned_workspaces.return_value = ["SALES", "HR"]
    store.install.return_value = installed_id
    return store


# ── build_collection ─────────────────────────────────────────────────────────


class TestBuildCollection:
    def test_single_document_uses_conventional_name(self) -> None:
        files = build_collection(b"prompt 1", TransferMode.SINGLE_DOCUMENT)
        assert files.names() == [SINGLE_DOCUMENT_NAME]
        assert files.files[0].contents == "prompt 1"

    def test_archive_is_unpacked(self, split_files: FileCollection) -> None:
        assert build_collection(pack(split_files), TransferMode.ARCHIVE) == split_files

    def test_empty_payload_rejected(self) -> None:
        with pytest.raises(InvalidPayload):
            build_collection(b"", TransferMode.SINGLE_DOCUMENT)

    def test_sql_payload_declared_as_zip(self) -> None:
        with pytest.raises(ArchiveFormatError):
            build_collection(b"prompt 1", TransferMode.ARCHIVE)

    def test_invalid_utf8_document(self) -> None:
        with pytest.raises(EncodingError):
            build_collection(b"\xff\xff", TransferMode.SINGLE_DOCUMENT)


# ── import_application ───────────────────────────────────────────────────────


class TestImportApplication:
    def test_forced_id_reaches_store(self) -> None:
        """A forced id is passed through regardless of the embedded one."""
        store = _mock_store(installed_id=205)
        outcome = import_application(
            store,
            b"-- application_id: 101\nprompt",
            "application/sql",
            target=TargetDescriptor(application_id=205),
            caller="alice",
        )
        _, kwargs = store.install.call_args
        assert kwargs == {"overwrite": True, "forced_id": 205}
        assert outcome.application_id == 205

    def test_no_forced_id_keeps_embedded(self) -> None:
        store = _mock_store()
        import_application(store, b"prompt", "application/sql", caller="alice")
        assert store.install.call_args.kwargs["forced_id"] is None

    def test_default_workspace_is_first_assigned(self) -> None:
        store = _mock_store()
        outcome = import_application(store, b"prompt", None, caller="alice")
        store.assigned_workspaces.assert_called_once_with("alice")
        assert store.install.call_args.args[0] == "SALES"
        assert outcome.workspace == "SALES"

    def test_explicit_workspace(self) -> None:
        store = _mock_store()
        outcome = import_application(
            store, b"prompt", None, target=TargetDescriptor(workspace="hr"), caller="alice"
        )
        assert store.install.call_args.args[0] == "HR"
        assert outcome.workspace == "HR"

    def test_archive_payload(self) -> None:
        store = _mock_store()
        blob = _make_zip({"f101/": b"", "f101/install.sql": b"-- application_id: 101"})
        outcome = import_application(store, blob, "application/zip", caller="alice")
        installed = store.install.call_args.args[1]
        assert installed.names() == ["f101/install.sql"]
        assert outcome.mode is TransferMode.ARCHIVE
        assert outcome.files == ["f101/install.sql"]

    def test_scope_failure_stops_before_parsing(self) -> None:
        store = _mock_store()
        store.assigned_workspaces.return_value = []
        with pytest.raises(ScopeResolutionError):
            import_application(store, b"not a zip", "application/zip", caller="alice")
        store.install.assert_not_called()

    def test_install_error_propagates(self) -> None:
        store = _mock_store()
        store.install.side_effect = InstallError("ORA-20001: invalid script")
        with pytest.raises(InstallError, match="ORA-20001"):
            import_application(store, b"prompt", None, caller="alice")

    def test_round_trip_through_memory_store(self, installed_store) -> None:
        """Export-shaped archive installs under a forced id in another workspace."""
        archive = pack(
            installed_store.get_definition("SALES", 101, components=None, split=True)
        )
        outcome = import_application(
            installed_store,
            archive,
            "application/zip",
            target=TargetDescriptor(application_id=205, workspace="HR"),
        )
        assert outcome.application_id == 205
        copy = installed_store.get_definition("HR", 205, components=None, split=True)
        assert len(copy.files) == 3
