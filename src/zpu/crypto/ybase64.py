"""YBase64 codec: base64 with ``+/=`` replaced by ``._-``."""

from __future__ import annotations

import base64

_ENCODE = str.maketrans("+/=", "._-")
_DECODE = str.maketrans("._-", "+/=")


def ybase64_encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii").translate(_ENCODE)


def ybase64_decode(text: str | bytes) -> bytes:
    """
    Decode a YBase64 string.

    Raises:
        ValueError: if the input is not valid YBase64.
    """
    try:
        if isinstance(text, bytes):
            text = text.decode("ascii")
        return base64.b64decode(text.strip().translate(_DECODE), validate=True)
    except ValueError as exc:
        raise ValueError(f"Invalid ybase64 data: {exc}") from exc
