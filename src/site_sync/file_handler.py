"""File handler module: encoding-aware reads, text writes, and key material.

Provides the small file I/O layer the publish pipeline builds on: reading
user-edited text files whose encoding is not known in advance, writing
generated files (CI workflows, ``CNAME``), and writing deploy keys with
owner-only permissions.
"""

import contextlib
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

from charset_normalizer import from_bytes

# =============================================================================
# File Read/Write
# =============================================================================


def read_file_with_encoding(path: Path) -> tuple[str, str]:
    """Read a file with automatic encoding detection.

    Reads raw bytes first, then uses charset-normalizer to detect encoding.
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.

    Returns:
        Tuple of (content_string, detected_encoding).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", "utf-8")

    result = from_bytes(raw).best()
    if result is None:
        encoding = "utf-8"
        content = raw.decode(encoding, errors="replace")
    else:
        encoding = result.encoding
        # ascii is a strict subset of utf-8
        if encoding == "ascii":
            encoding = "utf-8"
        content = str(result)
    return (content, encoding)


def write_file(
    path: Path, content: str, encoding: str = "utf-8"
) -> int:
    """Write content to a file, creating parent directories as needed.

    Args:
        path: Path to the output file.
        content: String content to write.
        encoding: Encoding to use (default: utf-8).

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)
    path.write_bytes(encoded)
    return len(encoded)


# =============================================================================
# Key material
# =============================================================================


def write_private_key(directory: Path, key_contents: str) -> Path:
    """Write a PEM private key to a fresh file readable only by the owner.

    The file is created with mode 0600 from the start (``mkstemp``), so
    the key is never briefly world-readable.

    Args:
        directory: Directory to create the key file in (created if missing).
        key_contents: PEM text, written verbatim.

    Returns:
        Path of the new key file.
    """
    directory.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=str(directory), prefix="deploykey-")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(key_contents)
        os.chmod(tmp_path, 0o600)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise
    return Path(tmp_path)


@contextlib.contextmanager
def private_key_file(directory: Path, key_contents: str) -> Iterator[Path]:
    """Context manager yielding a temporary 0600 key file.

    The file is deleted on every exit path, including errors and task
    cancellation.
    """
    key_path = write_private_key(directory, key_contents)
    try:
        yield key_path
    finally:
        key_path.unlink(missing_ok=True)
