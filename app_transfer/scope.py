"""
app_transfer/scope.py
-----------------------------------------------------------------------------
Workspace (tenant) scope resolution.

Import and delete must land in exactly one workspace.  An explicit target
workspace wins; otherwise the caller's first assigned workspace is used.
The fallback is a normal mode of operation, not an error — only the case
where neither source yields a workspace is fatal.
"""

from __future__ import annotations

import logging

from app_transfer.errors import ScopeResolutionError
from app_transfer.store import DefinitionStore

logger = logging.getLogger(__name__)


def normalise_workspace(name: str) -> str:
    """Workspace names are case-insensitive; store them upper-cased."""
    return name.strip().upper()


def resolve_scope(
    store: DefinitionStore,
    target_workspace: str | None,
    caller: str | None,
) -> str:
    """
    Resolve the workspace a request operates in.

    Parameters
    ----------
    store            : Store used to look up the caller's assignments.
    target_workspace : Explicit workspace override; blank counts as absent.
    caller           : Authenticated user name, used for the default.

    Returns
    -------
    str : Normalised workspace name.

    Raises
    ------
    ScopeResolutionError
        If no workspace is given and the caller has none assigned (or there
        is no caller to look up).
    """
    if target_workspace is not None and target_workspace.strip():
        return normalise_workspace(target_workspace)

    if not caller:
        raise ScopeResolutionError(
            "No target workspace given and no caller to derive a default workspace from."
        )

    workspaces = store.assigned_workspaces(caller)
    if not workspaces:
        raise ScopeResolutionError(f"User '{caller}' is not assigned to any workspace.")

    workspace = normalise_workspace(workspaces[0])
    logger.debug("No target workspace given; using %s (first assigned to %s)", workspace, caller)
    return workspace
