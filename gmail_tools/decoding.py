from __future__ import annotations

import base64
import binascii
import re
from typing import Optional, Union

from .models import MessagePart

DEFAULT_CHARSET = "utf-8"

_CHARSET = re.compile(r"""charset=["']?([^"';\s]+)["']?""", re.IGNORECASE)


def extract_charset(content_type: Optional[str]) -> Optional[str]:
    """
    Return the charset parameter of a Content-Type header value, if any.

    `text/plain; charset="ISO-2022-JP"` -> `ISO-2022-JP`. Malformed or missing
    headers simply yield None.
    """
    if not content_type:
        return None
    m = _CHARSET.search(content_type)
    if not m:
        return None
    return m.group(1)


def _b64url_decode(text: bytes) -> bytes:
    # Strict alphabet (validate=True); only the trailing "=" padding may be omitted.
    padded = text + b"=" * (-len(text) % 4)
    return base64.b64decode(padded, altchars=b"-_", validate=True)


def _to_text(raw: bytes, charset: str) -> str:
    try:
        return raw.decode(charset, errors="replace")
    except (LookupError, ValueError):
        # Unknown charset, or a codec that is not a text encoding (e.g. "base64").
        return raw.decode(DEFAULT_CHARSET, errors="replace")


def decode_body(data: Union[str, bytes, None], charset: Optional[str] = None) -> str:
    """
    Decode a Gmail body payload into text. Never raises.

    The payload is normally base64url; when it does not decode it is taken to be
    already-decoded content. Invalid byte sequences for the charset become U+FFFD.
    """
    if not data:
        return ""
    encoded = data.encode("utf-8", errors="surrogateescape") if isinstance(data, str) else bytes(data)
    try:
        raw = _b64url_decode(encoded)
    except (binascii.Error, ValueError):
        raw = encoded
    return _to_text(raw, charset or DEFAULT_CHARSET)


def decode_part_body(part: MessagePart) -> str:
    charset = extract_charset(part.header("Content-Type"))
    return decode_body(part.body_data, charset)
