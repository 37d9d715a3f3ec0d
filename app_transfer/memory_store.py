"""
app_transfer/memory_store.py
-----------------------------------------------------------------------------
In-process definition store for local development and tests.

Used when ``DEFINITION_STORE_URL`` is not configured.  Definitions are kept
as installed file collections keyed by workspace and application id; nothing
survives a restart.

Embedded application ids
------------------------
Definition scripts name their own id.  When an install is not forced to a
specific id, the first file carrying one of these markers decides it::

    -- application_id: 101
    p_default_application_id=>101

Component selection
-------------------
A component selector such as ``PAGE:1`` matches files whose base name
(without directory and extension) is ``page_1`` (case-insensitive).  Files
named ``install.sql`` are always kept so a filtered archive stays
installable.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Mapping

from app_transfer.errors import DefinitionNotFound, InstallError
from app_transfer.schema import ExportFile, FileCollection
from app_transfer.scope import normalise_workspace

_EMBEDDED_ID_PATTERN = re.compile(
    r"(?:^\s*--\s*application_id\s*:\s*|p_default_application_id\s*=>\s*)(\d+)",
    re.IGNORECASE | re.MULTILINE,
)

_ALWAYS_EXPORTED = "install.sql"


def embedded_application_id(files: FileCollection) -> int | None:
    """Return the first application id named inside ``files``, if any."""
    for f in files.files:
        match = _EMBEDDED_ID_PATTERN.search(f.contents)
        if match:
            return int(match.group(1))
    return None


def _component_key(file_name: str) -> str:
    base = file_name.rsplit("/", 1)[-1].rsplit(".", 1)[0]
    return base.upper()


def _selector_key(selector: str) -> str:
    return selector.strip().upper().replace(":", "_")


class InMemoryDefinitionStore:
    """
    Thread-safe dictionary-backed :class:`~app_transfer.store.DefinitionStore`.

    Parameters
    ----------
    assignments : Mapping of user name → assigned workspaces, default first.
    """

    kind = "memory"

    def __init__(self, assignments: Mapping[str, list[str]] | None = None) -> None:
        self._lock = threading.Lock()
        self._definitions: dict[str, dict[int, FileCollection]] = {}
        self._assignments: dict[str, list[str]] = {
            user.upper(): [normalise_workspace(w) for w in workspaces]
            for user, workspaces in (assignments or {}).items()
        }

    # -- Assignments ------------------------------------------------------- #

    def assign(self, caller: str, workspace: str) -> None:
        """Assign ``workspace`` to ``caller`` (appended after existing ones)."""
        with self._lock:
            self._assignments.setdefault(caller.upper(), []).append(
                normalise_workspace(workspace)
            )

    def assigned_workspaces(self, caller: str) -> list[str]:
        with self._lock:
            return list(self._assignments.get(caller.upper(), []))

    # -- Definitions ------------------------------------------------------- #

    def _locate(self, scope: str | None, application_id: int) -> FileCollection:
        if scope is not None:
            found = self._definitions.get(scope, {}).get(application_id)
        else:
            found = next(
                (
                    apps[application_id]
                    for apps in self._definitions.values()
                    if application_id in apps
                ),
                None,
            )
        if found is None:
            where = f" in workspace {scope}" if scope else ""
            raise DefinitionNotFound(f"Application {application_id} not found{where}.")
        return found

    def get_definition(
        self,
        scope: str | None,
        application_id: int,
        *,
        components: frozenset[str] | None,
        split: bool,
    ) -> FileCollection:
        with self._lock:
            stored = self._locate(scope, application_id)

        files = stored.files
        if components is not None:
            wanted = {_selector_key(c) for c in components}
            files = [
                f
                for f in files
                if _component_key(f.name) in wanted or f.name.endswith(_ALWAYS_EXPORTED)
            ]

        if split:
            return FileCollection(files=list(files))

        # Single document: concatenate the scripts in install order.
        script = "\n".join(f.contents for f in files)
        return FileCollection(files=[ExportFile(name=f"f{application_id}.sql", contents=script)])

    def install(
        self,
        scope: str,
        files: FileCollection,
        *,
        overwrite: bool = True,
        forced_id: int | None = None,
    ) -> int:
        if not files.files:
            raise InstallError("Nothing to install: the definition contains no files.")

        application_id = forced_id if forced_id is not None else embedded_application_id(files)
        if application_id is None:
            raise InstallError(
                "The definition does not name an application id and none was forced."
            )

        with self._lock:
            apps = self._definitions.setdefault(scope, {})
            if application_id in apps and not overwrite:
                raise InstallError(
                    f"Application {application_id} already exists in workspace {scope}."
                )
            apps[application_id] = files
        return application_id

    def remove_definition(self, scope: str, application_id: int) -> None:
        with self._lock:
            apps = self._definitions.get(scope, {})
            if application_id not in apps:
                raise DefinitionNotFound(
                    f"Application {application_id} not found in workspace {scope}."
                )
            del apps[application_id]
