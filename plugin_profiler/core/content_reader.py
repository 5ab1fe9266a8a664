"""Source file reading with graceful encoding fallback.

Plugins in the wild ship files saved in legacy charsets; every file is
decoded by trying :data:`_ENCODING_CHAIN` in order before falling back to
UTF-8 with replacement characters.
"""

from __future__ import annotations

import pathlib
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)

# Encodings to attempt in order when reading source files.
_ENCODING_CHAIN: tuple[str, ...] = ("utf-8", "cp1252", "latin-1")


def decode_source(raw: bytes, file_path: Optional[pathlib.Path] = None) -> str:
    """Decode *raw* bytes using the encoding chain.

    Args:
        raw: File contents.
        file_path: Used for logging only.

    Returns:
        The decoded text.
    """
    if raw.startswith(b"\xef\xbb\xbf"):
        raw = raw[3:]
    for encoding in _ENCODING_CHAIN:
        try:
            text = raw.decode(encoding)
        except UnicodeDecodeError:
            continue
        if encoding != _ENCODING_CHAIN[0]:
            logger.debug("decoded_with_fallback", file=str(file_path), encoding=encoding)
        return text

    logger.warning("encoding_fallback", file=str(file_path), tried=_ENCODING_CHAIN)
    return raw.decode("utf-8", errors="replace")


def read_source(file_path: pathlib.Path) -> str:
    """Read and decode a whole source file.

    Line endings are normalized to ``\\n`` so line numbers reported by the
    parsers match the previews sliced from the text.

    Args:
        file_path: Path of the file.

    Returns:
        The decoded text.

    Raises:
        OSError: If the file cannot be read.
    """
    text = decode_source(file_path.read_bytes(), file_path)
    return text.replace("\r\n", "\n").replace("\r", "\n")


def read_head(file_path: pathlib.Path, size: int = 8192) -> str:
    """Read and decode at most the first *size* bytes of a file.

    Raises:
        OSError: If the file cannot be read.
    """
    with file_path.open("rb") as fh:
        raw = fh.read(size)
    return decode_source(raw, file_path)
