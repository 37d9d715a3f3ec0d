"""
app_transfer/errors.py
-----------------------------------------------------------------------------
Exception taxonomy for the Application Transfer Service.

Domain modules raise these; only ``main.py`` translates them into HTTP
responses.  Every error is surfaced to the caller unchanged in kind — the
core performs no retries and never downgrades a failure to a warning.

Hierarchy
---------
TransferError
├── InvalidIdentifier     – target id missing or not an integer.
├── InvalidPayload        – upload is empty or otherwise unusable.
├── ArchiveFormatError    – payload claims archive mode but is not a zip.
├── EncodingError         – bytes are not valid UTF-8 where text is required.
├── ScopeResolutionError  – no workspace could be determined.
└── StoreError            – wrapped failure from the definition store.
    ├── DefinitionNotFound
    └── InstallError
"""

from __future__ import annotations


class TransferError(Exception):
    """Base class for every error raised by the transfer core."""


class InvalidIdentifier(TransferError):
    """The target application id is missing or not numeric."""


class InvalidPayload(TransferError):
    """The uploaded payload cannot be turned into a file collection."""


class ArchiveFormatError(TransferError):
    """The payload is not a well-formed (or acceptable) zip archive."""


class EncodingError(TransferError):
    """
    A byte sequence could not be decoded as UTF-8 text.

    ``entry`` names the archive entry being decoded, when there is one.
    """

    def __init__(self, message: str, *, entry: str | None = None) -> None:
        super().__init__(message)
        self.entry = entry


class ScopeResolutionError(TransferError):
    """Neither an explicit nor a default workspace could be resolved."""


class StoreError(TransferError):
    """
    A failure reported by the definition store.

    Parameters
    ----------
    detail      : The store's own diagnostic text, passed through verbatim.
    status_code : HTTP status of the backend response, when the store is
                  remote.  ``None`` for local stores and transport errors.
    """

    def __init__(self, detail: str, *, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class DefinitionNotFound(StoreError):
    """The requested application does not exist in the resolved workspace."""


class InstallError(StoreError):
    """The store rejected an install (parse or validation failure)."""
