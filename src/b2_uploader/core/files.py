"""Local file enumeration and remote name normalization."""

import fnmatch
import logging
import os
import re
from pathlib import Path, PurePath, PureWindowsPath
from typing import Iterable, List, Optional, Union

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

_WINDOWS_PATH = re.compile(r"^[A-Za-z]:|\\")


def _is_windows_path(path: Union[str, PurePath]) -> bool:
    return isinstance(path, str) and bool(_WINDOWS_PATH.search(path))


def _relative_name(path: PurePath, root: PurePath) -> str:
    """Return ``path`` relative to ``root`` as a forward-slash string.

    ``./data/a.txt`` and ``data/a.txt`` both sit under ``./data``. A relative
    path that is not under ``root`` is taken as already relative to it.
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        pass

    if isinstance(path, Path):
        try:
            absolute = Path(os.path.abspath(path))
            return absolute.relative_to(Path(os.path.abspath(root))).as_posix()
        except ValueError:
            pass

    if path.is_absolute() or path.drive:
        raise ValidationError("path", str(path), f"not located under {root}")
    return path.as_posix()


def normalize_remote_name(
    path: Union[str, Path], root: Optional[Union[str, Path]] = None
) -> str:
    """Return the remote name of ``path`` relative to ``root``.

    Backslashes become forward slashes and the result never starts with a
    slash, so ``C:\\data\\sub\\file.txt`` under ``C:\\data`` and
    ``sub/file.txt`` both map to ``sub/file.txt``.
    """
    if root is None:
        name = str(path).replace("\\", "/")
    elif _is_windows_path(path) or _is_windows_path(root):
        name = _relative_name(PureWindowsPath(path), PureWindowsPath(root))
    else:
        name = _relative_name(Path(path), Path(root))

    name = name.lstrip("/")
    if name in ("", "."):
        raise ValidationError("path", str(path), "does not name a file")
    return name


def _is_excluded(relative_path: str, exclude_patterns: Iterable[str]) -> bool:
    for pattern in exclude_patterns:
        if fnmatch.fnmatch(relative_path, pattern):
            return True
    return False


def enumerate_files(
    root: Union[str, Path],
    recursive: bool = False,
    exclude_patterns: Optional[List[str]] = None,
) -> List[Path]:
    """List regular files under ``root``.

    Args:
        root: Directory to upload
        recursive: Include files in sub directories
        exclude_patterns: Glob patterns matched against the relative path

    Returns:
        Sorted list of file paths
    """
    root = Path(root)
    if not root.exists():
        raise FileNotFoundError(f"Local directory not found: {root}")

    if not root.is_dir():
        raise ValueError(f"Path is not a directory: {root}")

    exclude_patterns = exclude_patterns or []
    candidates = root.rglob("*") if recursive else root.iterdir()

    files = []
    for file_path in candidates:
        if not file_path.is_file():
            continue
        relative_path = file_path.relative_to(root).as_posix()
        if _is_excluded(relative_path, exclude_patterns):
            logger.debug(f"Excluded {relative_path}")
            continue
        files.append(file_path)

    files.sort()
    logger.info(f"Found {len(files)} files under {root}")
    return files
