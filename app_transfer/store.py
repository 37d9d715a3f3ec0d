"""
app_transfer/store.py
-----------------------------------------------------------------------------
The definition store contract the transfer core depends on.

The store owns persistence of application definitions; the core only reads
file collections from it, installs collections into it, and removes
applications.  Every call carries the resolved workspace ``scope``
explicitly — there is no "current workspace" held on the store between
calls, so concurrent requests cannot leak their selection into each other.

Two implementations ship with the service:

- :class:`app_transfer.store_client.HttpDefinitionStore` – a REST backend.
- :class:`app_transfer.memory_store.InMemoryDefinitionStore` – local
  development and tests.
"""

from __future__ import annotations

from typing import Protocol

from app_transfer.schema import FileCollection


class DefinitionStore(Protocol):
    """Structural contract for application definition stores."""

    kind: str

    def get_definition(
        self,
        scope: str | None,
        application_id: int,
        *,
        components: frozenset[str] | None,
        split: bool,
    ) -> FileCollection:
        """
        Return the definition of ``application_id`` in ``scope``.

        ``scope`` may be ``None`` for exports: application ids are unique
        across workspaces, so the store looks the id up wherever it lives.

        When ``split`` is false the collection holds exactly one file.
        ``components`` restricts the export; ``None`` exports everything.
        """

    def install(
        self,
        scope: str,
        files: FileCollection,
        *,
        overwrite: bool = True,
        forced_id: int | None = None,
    ) -> int:
        """
        Install ``files`` into ``scope`` and return the installed id.

        ``forced_id`` overrides the id embedded in the definition.  With
        ``overwrite`` an existing application is replaced in place.
        """

    def remove_definition(self, scope: str, application_id: int) -> None:
        """Remove ``application_id`` from ``scope``."""

    def assigned_workspaces(self, caller: str) -> list[str]:
        """Return the workspaces assigned to ``caller``, default first."""
