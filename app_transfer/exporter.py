"""
app_transfer/exporter.py
-----------------------------------------------------------------------------
Export orchestration: target filename in, downloadable blob out.

Flow
----
1. Split ``"101.zip"`` into base ``"101"`` and suffix ``"zip"``.
2. Resolve the transfer mode (media-type hint beats suffix).
3. Parse the comma-separated component filter.
4. Read the definition from the store — split into many files for archive
   mode, one file for single-document mode.
5. Pack (archive) or encode (single document) and name the result
   ``<id>.zip`` / ``<id>.sql``.

A filter combined with single-document mode is allowed: the store receives
filter and split independently and returns one filtered script.

The result is only built once the complete blob exists, so a failure at any
step never hands a partial download to the caller.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass

from app_transfer.archive import pack
from app_transfer.codec import to_binary
from app_transfer.errors import InvalidIdentifier, StoreError
from app_transfer.scope import resolve_scope
from app_transfer.store import DefinitionStore
from app_transfer.transfer_mode import (
    TransferMode,
    extension_for,
    media_type_for,
    resolve_mode,
    split_filename,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportResult:
    """A finished export, ready for the transport layer."""

    content: bytes
    filename: str
    media_type: str
    mode: TransferMode
    sha256: str

    @property
    def content_length(self) -> int:
        return len(self.content)


# -----------------------------------------------------------------------------
# Request parsing
# -----------------------------------------------------------------------------


def parse_components(components: str | None) -> frozenset[str] | None:
    """
    Parse the wire form of a component filter.

    ``" PAGE:1, PAGE:2 "`` → ``frozenset({"PAGE:1", "PAGE:2"})``.  Tokens are
    trimmed and empty tokens dropped; if nothing is left the result is
    ``None``, meaning "export everything".
    """
    if components is None:
        return None
    selectors = frozenset(token.strip() for token in components.split(",") if token.strip())
    return selectors or None


def parse_application_id(value: str | None) -> int:
    """
    Parse a base identifier such as ``"101"`` into an integer.

    Raises
    ------
    InvalidIdentifier : If the value is missing, blank, or not an integer.
    """
    if value is None or not value.strip():
        raise InvalidIdentifier("Missing application id.")
    try:
        return int(value.strip())
    except ValueError as exc:
        raise InvalidIdentifier(f"Application id must be numeric, got '{value}'.") from exc


# -----------------------------------------------------------------------------
# Export
# -----------------------------------------------------------------------------


def export_application(
    store: DefinitionStore,
    target_file: str,
    components: str | None = None,
    media_type_hint: str | None = None,
    *,
    workspace: str | None = None,
    caller: str | None = None,
) -> ExportResult:
    """
    Export one application definition as ``<id>.sql`` or ``<id>.zip``.

    Parameters
    ----------
    store           : Definition store to read from.
    target_file     : ``"<id>"`` or ``"<id>.<ext>"``; the suffix only sets
                      the default mode.
    components      : Optional comma-separated component selectors.
    media_type_hint : Requested media type; overrides the suffix.
    workspace       : Optional workspace to read from.  When neither this
                      nor ``caller`` is given the store looks the id up in
                      any workspace.
    caller          : Authenticated user; with no explicit ``workspace``
                      their default workspace scopes the read.

    Returns
    -------
    ExportResult : Blob, response filename, declared media type and digest.

    Raises
    ------
    InvalidIdentifier : If the base identifier is not numeric.
    StoreError        : If the store fails, or breaks the one-file contract
                        of a single-document export.
    """
    base, _ = split_filename(target_file)
    mode = resolve_mode(target_file, media_type_hint)
    selectors = parse_components(components)
    application_id = parse_application_id(base)

    scope: str | None = None
    if workspace or caller:
        scope = resolve_scope(store, workspace, caller)

    files = store.get_definition(
        scope,
        application_id,
        components=selectors,
        split=mode is TransferMode.ARCHIVE,
    )

    if mode is TransferMode.ARCHIVE:
        content = pack(files)
    else:
        try:
            document = files.single()
        except ValueError as exc:
            raise StoreError(
                f"Definition store returned {len(files.files)} files for a "
                f"single-document export of application {application_id}."
            ) from exc
        content = to_binary(document.contents)

    result = ExportResult(
        content=content,
        filename=f"{application_id}.{extension_for(mode)}",
        media_type=media_type_for(mode),
        mode=mode,
        sha256=hashlib.sha256(content).hexdigest(),
    )
    logger.info(
        "Exported application %s (%s, %d files, %d bytes, components=%s)",
        application_id,
        mode.value,
        len(files.files),
        result.content_length,
        ",".join(sorted(selectors)) if selectors else "all",
    )
    return result
