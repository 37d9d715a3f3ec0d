"""
app_transfer/transfer_mode.py
-----------------------------------------------------------------------------
Format resolution: single document or archive?

Every export and import is carried out in exactly one of two
representations:

- **Single document** – the whole application definition is one SQL
  script, served as ``<id>.sql`` with media type ``application/sql``.
- **Archive** – the definition is split across many named scripts bundled
  into one zip, served as ``<id>.zip`` with media type ``application/zip``.

The mode is derived once per request by :func:`resolve_mode` and then
passed around as a :class:`TransferMode` value, so the export and import
paths can never disagree about how a suffix or media type is interpreted.

Precedence
----------
1. A non-empty media-type hint is authoritative.  Only the archive media
   type selects ARCHIVE; anything else (including ``application/sql`` or an
   unknown type) selects SINGLE_DOCUMENT.  Parameters (``; charset=...``)
   and case are ignored.
2. Without a hint, the filename suffix after the last ``.`` decides.
3. No hint and no suffix falls back to SINGLE_DOCUMENT.
"""

from __future__ import annotations

from enum import Enum

ARCHIVE_MEDIA_TYPE: str = "application/zip"
DOCUMENT_MEDIA_TYPE: str = "application/sql"

ARCHIVE_EXTENSION: str = "zip"
DOCUMENT_EXTENSION: str = "sql"


class TransferMode(str, Enum):
    """Representation used for one transfer."""

    SINGLE_DOCUMENT = "single_document"
    ARCHIVE = "archive"


# -----------------------------------------------------------------------------
# Filename handling
# -----------------------------------------------------------------------------


def split_filename(name: str | None) -> tuple[str, str | None]:
    """
    Split ``name`` on its last ``.`` into ``(base, suffix)``.

    The suffix is returned without the dot and with its original case.  A
    name without a dot (or with nothing after the final dot) has no suffix.

    Examples
    --------
    >>> split_filename("101.zip")
    ('101', 'zip')
    >>> split_filename("101")
    ('101', None)
    """
    if not name:
        return "", None
    base, dot, suffix = name.rpartition(".")
    if not dot:
        return name, None
    if not suffix:
        return base, None
    return base, suffix


def _normalise_media_type(media_type: str) -> str:
    # "Application/ZIP; charset=binary" -> "application/zip"
    return media_type.split(";", 1)[0].strip().lower()


# -----------------------------------------------------------------------------
# Mode resolution
# -----------------------------------------------------------------------------


def resolve_mode(filename_hint: str | None, media_type_hint: str | None = None) -> TransferMode:
    """
    Decide the transfer mode for a request.

    Parameters
    ----------
    filename_hint   : Target filename such as ``"101.zip"``; may be ``None``
                      for uploads, which carry no filename.
    media_type_hint : Explicit media type (``Accept`` for exports,
                      ``Content-Type`` for imports).  Overrides the suffix
                      whenever it is present and non-blank.

    Returns
    -------
    TransferMode : Never raises; ambiguous input yields SINGLE_DOCUMENT.
    """
    if media_type_hint is not None and media_type_hint.strip():
        if _normalise_media_type(media_type_hint) == ARCHIVE_MEDIA_TYPE:
            return TransferMode.ARCHIVE
        return TransferMode.SINGLE_DOCUMENT

    _, suffix = split_filename(filename_hint)
    if suffix is not None and suffix.lower() == ARCHIVE_EXTENSION:
        return TransferMode.ARCHIVE
    return TransferMode.SINGLE_DOCUMENT


def media_type_for(mode: TransferMode) -> str:
    """Return the declared media type for ``mode``."""
    if mode is TransferMode.ARCHIVE:
        return ARCHIVE_MEDIA_TYPE
    return DOCUMENT_MEDIA_TYPE


def extension_for(mode: TransferMode) -> str:
    """Return the filename extension (without the dot) for ``mode``."""
    if mode is TransferMode.ARCHIVE:
        return ARCHIVE_EXTENSION
    return DOCUMENT_EXTENSION
