"""Directory walker: yields the regular, non-hidden files under a source directory."""

import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

from common.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """
    One file to be chunked.
    """
    path: Path
    key: str
    size: int


def is_hidden(name: str) -> bool:
    return len(name) > 1 and name.startswith('.')


def walk_sources(root: Union[str, Path], exclude: Optional[Path] = None) -> Iterator[SourceFile]:
    """
    Recursively list files to chunk, in sorted order.

    Hidden directories and files (leading '.') are skipped, as are
    symlinks and anything that is not a regular file. The key of each file
    is its path relative to root, with '/' separators.

    Args:
        root: Directory to scan
        exclude: Directory to leave out of the scan (e.g. the output directory)

    Yields:
        SourceFile entries
    """
    root = Path(root)
    exclude = exclude.resolve() if exclude is not None else None
    yield from _walk(root, root, exclude)


def _walk(root: Path, directory: Path, exclude: Optional[Path]) -> Iterator[SourceFile]:
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda e: e.name)

    for entry in entries:
        path = Path(entry.path)
        if is_hidden(entry.name):
            logger.debug(f"Skip hidden entry: {path}")
            continue

        if entry.is_dir(follow_symlinks=False):
            if exclude is not None and path.resolve() == exclude:
                logger.debug(f"Skip output directory: {path}")
                continue
            yield from _walk(root, path, exclude)
            continue

        st = entry.stat(follow_symlinks=False)
        if not stat.S_ISREG(st.st_mode):
            logger.info(f"Skip non-regular file: {path}")
            continue

        key = path.relative_to(root).as_posix()
        if '/' in key:
            logger.warning(f"{key} is nested; lookups only resolve top-level file keys")
        yield SourceFile(path=path, key=key, size=st.st_size)
