"""File handler module: the local filesystem collaborator.

``LocalFileSystem`` implements the primitives the reconciliation engine
needs (exists, is_dir, is_symlink, read_text, write_text, walk,
mod_time).  The engine only talks to the filesystem through an object
with this shape, so tests can substitute their own.
"""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from charset_normalizer import from_bytes

logger = logging.getLogger(__name__)


# =============================================================================
# Decoding
# =============================================================================


def detect_encoding(raw: bytes) -> str:
    """Return the encoding of *raw*: ``utf-8`` when it decodes, else detected.

    Undetectable content is reported as ``utf-8``.
    """
    try:
        raw.decode("utf-8")
    except UnicodeDecodeError:
        pass
    else:
        return "utf-8"

    result = from_bytes(raw).best()
    if result is None:
        return "utf-8"
    logger.debug("Detected encoding %s", result.encoding)
    return result.encoding


def decode_bytes(raw: bytes) -> str:
    """Decode file bytes to text.

    UTF-8 is tried first so that text round-trips byte for byte; other
    encodings are detected with charset-normalizer.  Undetectable content
    falls back to UTF-8 with replacement characters.
    """
    if not raw:
        return ""
    return raw.decode(detect_encoding(raw), errors="replace")


# =============================================================================
# Filesystem collaborator
# =============================================================================


class LocalFileSystem:
    """Filesystem primitives backed by the real OS."""

    def exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def is_dir(self, path: str) -> bool:
        return os.path.isdir(path) and not os.path.islink(path)

    def is_symlink(self, path: str) -> bool:
        return os.path.islink(path)

    def read_text(self, path: str) -> str:
        return decode_bytes(Path(path).read_bytes())

    def write_text(self, path: str, content: str) -> int:
        """Write content to a file, creating parent directories as needed.

        An existing file keeps its detected encoding; new files, and
        content the old encoding cannot represent, are written as UTF-8.

        Returns:
            Number of bytes written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        encoding = "utf-8"
        if target.is_file():
            encoding = detect_encoding(target.read_bytes())
        try:
            encoded = content.encode(encoding)
        except UnicodeEncodeError:
            logger.warning(
                "Content of %s cannot be encoded as %s, writing UTF-8",
                path,
                encoding,
            )
            encoded = content.encode("utf-8")
        target.write_bytes(encoded)
        return len(encoded)

    def mod_time(self, path: str) -> datetime:
        """Return the modification time of *path* as an aware UTC datetime."""
        return datetime.fromtimestamp(os.stat(path).st_mtime, tz=timezone.utc)

    def walk(
        self, path: str, on_skip: Callable[[str], None] | None = None
    ) -> list[str]:
        """Return every regular file beneath *path*, sorted.

        Symlinks (to files or directories) are skipped with a warning and
        never followed; *on_skip* is called with each one.  An unreadable
        sub-directory raises the underlying ``OSError`` so the caller can
        abort the whole operation.
        """

        def _raise(err: OSError) -> None:
            raise err

        def _skip(full: str) -> None:
            logger.warning("symlinks not currently supported: %s", full)
            if on_skip is not None:
                on_skip(full)

        found: list[str] = []
        for dirpath, dirnames, filenames in os.walk(
            path, onerror=_raise, followlinks=False
        ):
            for name in list(dirnames):
                full = os.path.join(dirpath, name)
                if os.path.islink(full):
                    _skip(full)
                    dirnames.remove(name)
            for name in filenames:
                full = os.path.join(dirpath, name)
                if os.path.islink(full):
                    _skip(full)
                    continue
                if os.path.isfile(full):
                    found.append(full)
        return sorted(found)
