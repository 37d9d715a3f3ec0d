"""
app_transfer/archive.py
-----------------------------------------------------------------------------
In-memory zip packing and unpacking of application definition files.

Why a dedicated module?
-----------------------
Both export (collection → zip) and import (zip → collection) need the same
entry naming, encoding and safety rules.  Keeping them here, independent of
HTTP routing and the definition store, lets the orchestrators stay thin and
lets the zip handling be tested with plain bytes.

Sections
--------
1. **Limits** — entry count and entry size caps for uploaded archives.
2. **Pack** — bundle an ordered :class:`FileCollection` into zip bytes.
3. **Unpack** — validate an uploaded zip and rebuild the collection,
   keeping only real files.

"Real files only"
-----------------
Zip tools commonly add directory-marker entries (``f101/``,
``f101/application/``).  These are zero-length and carry no script, so they
are skipped.  A regular file that happens to be empty is *kept*: it is part
of the definition and dropping it would break pack/unpack round trips.
"""

from __future__ import annotations

import io
import logging
import zipfile
import zlib
from dataclasses import dataclass

from app_transfer import settings
from app_transfer.codec import to_binary, to_text
from app_transfer.errors import ArchiveFormatError
from app_transfer.schema import ExportFile, FileCollection

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section 1: Limits
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ArchiveLimits:
    """
    Safety limits applied while unpacking an uploaded archive.

    These prevent zip bombs and oversized uploads from consuming server
    memory.  Defaults come from :mod:`app_transfer.settings`.
    """

    max_entries: int = settings.MAX_ARCHIVE_ENTRIES
    max_entry_size: int = settings.MAX_ENTRY_SIZE


# ---------------------------------------------------------------------------
# Section 2: Pack
# ---------------------------------------------------------------------------


def pack(files: FileCollection) -> bytes:
    """
    Bundle a file collection into a compressed zip archive.

    One entry is written per file, named exactly as the file and in
    collection order.  Empty collections produce a valid, empty zip.

    Parameters
    ----------
    files : Definition files to archive.

    Returns
    -------
    bytes : Raw zip file bytes, ready to return to the client.
    """
    buffer = io.BytesIO()

    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for f in files.files:
            zf.writestr(f.name, to_binary(f.contents))

    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Section 3: Unpack
# ---------------------------------------------------------------------------


def _is_unsafe_name(name: str) -> bool:
    """True for absolute paths and names that climb out with ``..``."""
    normalised = name.replace("\\", "/")
    if normalised.startswith("/"):
        return True
    # Windows drive letters ("C:/...")
    if len(normalised) > 1 and normalised[1] == ":":
        return True
    return ".." in normalised.split("/")


def _is_directory_marker(info: zipfile.ZipInfo) -> bool:
    return info.is_dir() or (info.file_size == 0 and info.filename.endswith("\\"))


def unpack(blob: bytes, *, limits: ArchiveLimits | None = None) -> FileCollection:
    """
    Parse, validate, and extract an uploaded zip archive.

    Directory markers are skipped; every other entry is decoded as UTF-8
    and becomes an :class:`ExportFile`, in archive enumeration order.

    Parameters
    ----------
    blob   : Raw bytes of the uploaded zip file.
    limits : Optional override of the entry count / size limits.

    Returns
    -------
    FileCollection : The definition files found in the archive.

    Raises
    ------
    ArchiveFormatError
        If the input is not a valid zip, exceeds the limits, contains
        path-traversal or duplicate entries, or an entry cannot be read.
    EncodingError
        If an entry is not valid UTF-8.
    """
    limits = limits or ArchiveLimits()

    # -- Gate: is it a valid zip file? ------------------------------------ #
    if not blob or not zipfile.is_zipfile(io.BytesIO(blob)):
        raise ArchiveFormatError("Uploaded payload is not a valid zip archive.")

    files: list[ExportFile] = []
    seen: set[str] = set()

    try:
        with zipfile.ZipFile(io.BytesIO(blob), mode="r") as zf:
            entries = zf.infolist()

            # -- Security: limit the number of entries ------------------- #
            if len(entries) > limits.max_entries:
                raise ArchiveFormatError(
                    f"Zip contains {len(entries)} entries, exceeding the "
                    f"maximum of {limits.max_entries}."
                )

            for info in entries:
                name = info.filename

                if _is_directory_marker(info):
                    logger.debug("Skipping directory entry '%s'", name)
                    continue

                if not name.strip():
                    raise ArchiveFormatError("Zip contains an entry with a blank name.")

                # -- Security: reject path traversal attempts ------------ #
                if _is_unsafe_name(name):
                    raise ArchiveFormatError(
                        f"Zip entry '{name}' is absolute or contains parent "
                        f"references — possible path traversal."
                    )

                # -- Security: enforce per-entry size limit -------------- #
                if info.file_size > limits.max_entry_size:
                    raise ArchiveFormatError(
                        f"Zip entry '{name}' is {info.file_size:,} bytes, "
                        f"exceeding the {limits.max_entry_size:,}-byte limit."
                    )

                if name in seen:
                    raise ArchiveFormatError(f"Zip contains duplicate entry '{name}'.")
                seen.add(name)

                files.append(ExportFile(name=name, contents=to_text(zf.read(info), entry=name)))
    except (
        zipfile.BadZipFile,
        zipfile.LargeZipFile,
        NotImplementedError,
        EOFError,
        RuntimeError,
        zlib.error,
    ) as exc:
        # Corrupt members, unsupported compression methods, encrypted entries
        # and truncated data only surface once an entry is actually read.
        raise ArchiveFormatError(f"Zip archive could not be read: {exc}") from exc

    return FileCollection(files=files)
