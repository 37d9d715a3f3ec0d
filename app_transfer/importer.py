"""
app_transfer/importer.py
-----------------------------------------------------------------------------
Import orchestration: uploaded payload in, installed application out.

The upload carries no filename, so the declared media type alone decides
whether the payload is one SQL script or a zip of scripts.  Either way the
payload is rebuilt into a :class:`FileCollection` and handed to the store
with overwrite semantics, optionally forcing the application id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app_transfer.archive import ArchiveLimits, unpack
from app_transfer.codec import to_text
from app_transfer.errors import InvalidPayload
from app_transfer.schema import ExportFile, FileCollection, TargetDescriptor
from app_transfer.scope import resolve_scope
from app_transfer.store import DefinitionStore
from app_transfer.transfer_mode import TransferMode, resolve_mode

logger = logging.getLogger(__name__)

# Name given to the one file of a single-document upload.
SINGLE_DOCUMENT_NAME: str = "install.sql"


@dataclass(frozen=True)
class ImportOutcome:
    """What an import did."""

    application_id: int
    workspace: str
    mode: TransferMode
    files: list[str] = field(default_factory=list)


def build_collection(
    payload: bytes,
    mode: TransferMode,
    *,
    limits: ArchiveLimits | None = None,
) -> FileCollection:
    """
    Rebuild the canonical file collection from an uploaded payload.

    Raises
    ------
    InvalidPayload     : If the payload is empty.
    ArchiveFormatError : Archive mode and the payload is not a usable zip.
    EncodingError      : The payload (or an entry) is not valid UTF-8.
    """
    if not payload:
        raise InvalidPayload("Uploaded payload is empty.")

    if mode is TransferMode.ARCHIVE:
        return unpack(payload, limits=limits)
    return FileCollection(files=[ExportFile(name=SINGLE_DOCUMENT_NAME, contents=to_text(payload))])


def import_application(
    store: DefinitionStore,
    payload: bytes,
    media_type_hint: str | None,
    *,
    target: TargetDescriptor | None = None,
    caller: str | None = None,
    limits: ArchiveLimits | None = None,
) -> ImportOutcome:
    """
    Install an uploaded application definition.

    Parameters
    ----------
    store           : Definition store to install into.
    payload         : Raw upload bytes.
    media_type_hint : Declared media type of the upload.
    target          : Optional workspace / application id overrides.  A
                      forced id replaces whatever id the definition embeds.
    caller          : Authenticated user, for the default workspace.
    limits          : Archive safety limits override.

    Returns
    -------
    ImportOutcome : Installed id, workspace, mode and applied file names.

    Raises
    ------
    ScopeResolutionError : No workspace could be resolved.
    InvalidPayload, ArchiveFormatError, EncodingError
                         : The payload could not be rebuilt.
    StoreError           : The store rejected the install; never reported
                           as success.
    """
    target = target or TargetDescriptor()

    # Scope first: nothing is parsed or installed without a workspace.
    workspace = resolve_scope(store, target.workspace, caller)
    mode = resolve_mode(None, media_type_hint)
    files = build_collection(payload, mode, limits=limits)

    application_id = store.install(
        workspace,
        files,
        overwrite=True,
        forced_id=target.application_id,
    )

    logger.info(
        "Imported application %s into %s (%s, %d files, %d bytes%s)",
        application_id,
        workspace,
        mode.value,
        len(files.files),
        len(payload),
        ", forced id" if target.application_id is not None else "",
    )
    return ImportOutcome(
        application_id=application_id,
        workspace=workspace,
        mode=mode,
        files=files.names(),
    )
