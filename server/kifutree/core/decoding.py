from __future__ import annotations

import codecs

from ..config import DEFAULT_ENCODING


def decode_kif_bytes(data: bytes, encoding: str | None = None, *, fallback: str = DEFAULT_ENCODING) -> str:
    """Decode a KIF file body.

    An explicit ``encoding`` wins. Otherwise UTF-8 is tried first (``.kifu``
    files and most web uploads), then ``fallback`` (Shift-JIS family).
    """
    if encoding:
        try:
            codecs.lookup(encoding)
        except LookupError as exc:
            raise ValueError(f"unknown encoding: {encoding}") from exc
        return data.decode(encoding, errors="replace")
    if data.startswith(codecs.BOM_UTF8):
        return data[len(codecs.BOM_UTF8) :].decode("utf-8", errors="replace")
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode(fallback, errors="replace")


def split_lines(text: str) -> list[str]:
    # splitlines() keeps "\r\n" as one break so CRLF files gain no blank lines.
    return text.splitlines()
