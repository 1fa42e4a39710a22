"""Path-safe logging setup for insignia.

Log records that mention audio or image files are rewritten so that only
a short, relative form of the path (or a hash of it) reaches the log.
Logs are written to stderr; stdout is reserved for field output.
"""

from __future__ import annotations

import hashlib
import logging
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

# Marks the handler installed by configure_safe_logging so it is only added once
_HANDLER_NAME = "insignia-safe"


def hash_path(file_path: Path | str, length: int = 12) -> str:
    """Deterministic, truncated SHA256 of a path."""
    return hashlib.sha256(str(file_path).encode()).hexdigest()[:length]


def relativize_path(file_path: Path | str, library_root: Path | str | None = None) -> str:
    """Convert path to relative form for safe logging.

    If library_root is provided, returns path relative to it.
    Otherwise, returns just the filename with its parent directory.
    """
    path = Path(file_path)

    if library_root:
        try:
            return str(path.relative_to(Path(library_root)))
        except ValueError:
            pass

    if path.parent.name:
        return f"{path.parent.name}/{path.name}"
    return path.name


def safe_path(
    file_path: Path | str,
    library_root: Path | str | None = None,
    use_hash: bool = False,
) -> str:
    """Get a safe representation of a path for logging."""
    if use_hash:
        return f"file:{hash_path(file_path)}"
    return relativize_path(file_path, library_root)


def _library_root() -> Path | None:
    root = os.environ.get("INSIGNIA_LIBRARY_ROOT")
    return Path(root) if root else None


class SafeLogFormatter(logging.Formatter):
    """Log formatter that shortens or hashes file paths in record arguments."""

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        hash_paths: bool = False,
        library_root: Path | None = None,
    ):
        super().__init__(fmt, datefmt)
        self.hash_paths = hash_paths
        self.library_root = library_root if library_root is not None else _library_root()

    def format(self, record: logging.LogRecord) -> str:
        # Work on a copy so other handlers see the original record
        record = logging.makeLogRecord(record.__dict__)
        if record.args:
            record.args = self._sanitize_args(record.args)
        return super().format(record)

    def _sanitize_args(
        self, args: tuple[Any, ...] | Mapping[str, Any]
    ) -> tuple[Any, ...] | dict[str, Any]:
        if isinstance(args, Mapping):
            return {k: self._sanitize_value(v) for k, v in args.items()}
        return tuple(self._sanitize_value(arg) for arg in args)

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, Path):
            return safe_path(value, self.library_root, use_hash=self.hash_paths)
        return value


def configure_safe_logging(
    level: int = logging.WARNING,
    format_string: str | None = None,
    hash_paths: bool = False,
) -> None:
    """Configure root logging on stderr with path-safe formatting.

    Calling it again replaces the previously installed handler.

    Args:
        level: Logging level
        format_string: Optional custom format string
        hash_paths: Whether to hash file paths instead of shortening them
    """
    if format_string is None:
        format_string = "%(levelname)s %(name)s: %(message)s"

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(SafeLogFormatter(fmt=format_string, hash_paths=hash_paths))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(existing)
    root_logger.setLevel(level)
    root_logger.addHandler(handler)


## Tests


def test_hash_path():
    """Test path hashing."""
    path1 = Path("/home/user/music/song.mp3")
    path2 = Path("/home/user/music/other.mp3")

    assert len(hash_path(path1)) == 12
    assert hash_path(path1) == hash_path(Path("/home/user/music/song.mp3"))
    assert hash_path(path1) != hash_path(path2)


def test_relativize_path():
    """Test path relativization."""
    path = Path("/home/user/music/artist/album/song.mp3")

    assert relativize_path(path, "/home/user/music") == "artist/album/song.mp3"
    assert relativize_path(path) == "album/song.mp3"
    assert relativize_path(path, "/elsewhere") == "album/song.mp3"


def test_safe_log_formatter_shortens_paths():
    """Test SafeLogFormatter rewrites Path arguments."""
    formatter = SafeLogFormatter(fmt="%(message)s", library_root=Path("/nowhere"))

    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg="Wrote tags to %s",
        args=(Path("/home/user/music/album/song.mp3"),),
        exc_info=None,
    )

    assert formatter.format(record) == "Wrote tags to album/song.mp3"


def test_safe_log_formatter_hashes_paths():
    formatter = SafeLogFormatter(fmt="%(message)s", hash_paths=True)
    path = Path("/home/user/music/song.mp3")

    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg="Opened %s",
        args=(path,),
        exc_info=None,
    )

    assert formatter.format(record) == f"Opened file:{hash_path(path)}"
