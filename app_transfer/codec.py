"""
app_transfer/codec.py
-----------------------------------------------------------------------------
Text ↔ bytes conversion for application definition scripts.

Definition scripts are text, but archive entries and HTTP payloads are
bytes.  Both directions use UTF-8 and are lossless for valid input: no
newline translation, no BOM stripping, no whitespace normalisation.
Invalid byte sequences are surfaced as :class:`EncodingError` rather than
replaced, because a silently mangled script would install a different
application than the one exported.
"""

from __future__ import annotations

from app_transfer.errors import EncodingError

ENCODING: str = "utf-8"


def to_binary(text: str) -> bytes:
    """Encode a definition script as UTF-8 bytes."""
    return text.encode(ENCODING)


def to_text(data: bytes, *, entry: str | None = None) -> str:
    """
    Decode UTF-8 bytes into a definition script.

    Parameters
    ----------
    data  : Raw bytes of an upload or archive entry.
    entry : Optional archive entry name, included in the error message.

    Raises
    ------
    EncodingError : If ``data`` is not valid UTF-8.
    """
    try:
        return data.decode(ENCODING)
    except UnicodeDecodeError as exc:
        where = f"Entry '{entry}'" if entry else "Payload"
        raise EncodingError(
            f"{where} is not valid UTF-8 text (byte {exc.start}: {exc.reason}).",
            entry=entry,
        ) from exc
