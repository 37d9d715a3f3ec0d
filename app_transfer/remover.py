"""
app_transfer/remover.py
-----------------------------------------------------------------------------
Delete orchestration.  Resolves the workspace the same way imports do and
asks the store to remove the application; store errors, including "not
found", propagate unchanged.
"""

from __future__ import annotations

import logging

from app_transfer.scope import resolve_scope
from app_transfer.store import DefinitionStore

logger = logging.getLogger(__name__)


def delete_application(
    store: DefinitionStore,
    application_id: int,
    *,
    target_workspace: str | None = None,
    caller: str | None = None,
) -> str:
    """Remove ``application_id`` and return the workspace it was removed from."""
    workspace = resolve_scope(store, target_workspace, caller)
    store.remove_definition(workspace, application_id)
    logger.info("Deleted application %s from %s", application_id, workspace)
    return workspace
