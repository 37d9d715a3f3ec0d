"""Shared fixtures for the Application Transfer Service test suite."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app_transfer.main import app, get_store
from app_transfer.memory_store import InMemoryDefinitionStore
from app_transfer.schema import ExportFile, FileCollection


@pytest.fixture()
def store() -> InMemoryDefinitionStore:
    """Fresh in-memory store; user ALICE defaults to SALES, then HR."""
    return InMemoryDefinitionStore({"alice": ["sales", "hr"]})


@pytest.fixture()
def client(store: InMemoryDefinitionStore):
    """FastAPI test client wired to the ``store`` fixture."""
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def split_files() -> FileCollection:
    """A small split export of application 101."""
    return FileCollection(
        files=[
            ExportFile(
                name="f101/install.sql",
                contents="-- application_id: 101\n@@application/pages/page_1.sql\n",
            ),
            ExportFile(name="f101/application/pages/page_1.sql", contents="begin page 1; end;\n"),
            ExportFile(name="f101/application/pages/page_2.sql", contents="begin page 2; end;\n"),
        ]
    )


@pytest.fixture()
def installed_store(
    store: InMemoryDefinitionStore, split_files: FileCollection
) -> InMemoryDefinitionStore:
    """Store with application 101 already installed in SALES."""
    store.install("SALES", split_files)
    return store

