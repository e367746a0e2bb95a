"""Path helpers shared by the settings loader, page model, and generator."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from .errors import RelativePathUnresolvable

# mkstemp creates owner-only files; outputs get the mode open() would give
_OUTPUT_FILE_MODE = 0o666


def resolve_path(path: Path | str, base: Path | None = None) -> Path:
    """Return the canonical absolute form of ``path``.

    Relative paths are anchored at ``base`` when given, otherwise at the
    current working directory. Symlinks are resolved; the target need not
    exist.
    """
    candidate = Path(path).expanduser()
    if not candidate.is_absolute() and base is not None:
        candidate = base / candidate
    return candidate.resolve()


def relative_to_root(path: Path, root: Path) -> Path:
    """Return ``path`` relative to ``root`` or raise ``RelativePathUnresolvable``."""
    try:
        return path.relative_to(root)
    except ValueError as exc:
        msg = f"'{path}' does not lie under the project source root '{root}'."
        raise RelativePathUnresolvable(msg, source_path=path) from exc


def format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _current_umask() -> int:
    # os.umask can only be read by setting it
    mask = os.umask(0)
    os.umask(mask)
    return mask


def write_atomic(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` without ever leaving a partial file behind.

    Parent directories are created on demand. The content is written to a
    temporary file in the destination directory and moved into place.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.chmod(tmp_path, _OUTPUT_FILE_MODE & ~_current_umask())
        tmp_path.replace(path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


__all__ = [
    "format_path",
    "relative_to_root",
    "resolve_path",
    "write_atomic",
]
