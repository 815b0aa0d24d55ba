"""
File scanner module for genqrc.

Walks the resource directories and reads every regular file into memory,
keyed by its slash-normalized virtual path.
"""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Generator, Iterable, Optional

import pathspec

from .config import PackStats, ResourceEntry
from .utils import to_virtual_path


def build_exclude_spec(exclude_globs: Optional[Iterable[str]]) -> Optional[pathspec.PathSpec]:
    """Compile gitignore-style exclude patterns.

    Returns None when no patterns are given.
    """
    patterns = [p.strip() for p in (exclude_globs or []) if p and p.strip()]
    if not patterns:
        return None
    return pathspec.PathSpec.from_lines(pathspec.patterns.GitWildMatchPattern, patterns)


def walk_resources(root: str) -> Generator[str, None, None]:
    """
    Walk a resource root and yield the path of every non-directory entry.

    Entries are visited depth-first in lexical order of their names, so the
    output is stable across runs. A symlinked root is followed, but directory
    symlinks below the root are not: they are yielded like files and fail when
    read. A root that is not a directory is yielded as is.

    Raises:
        OSError: If the root is missing or any directory cannot be listed.
    """
    if not os.path.isdir(root):
        # Raises FileNotFoundError for a missing root
        os.stat(root)
        yield root
        return

    with os.scandir(root) as it:
        entries = sorted(it, key=lambda e: e.name)

    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from walk_resources(entry.path)
        else:
            yield entry.path


class ResourceScanner:
    """
    Gathers the files under a set of resource directories.

    Every file under the roots is read exactly once; a file reachable through
    overlapping roots keeps its first occurrence.
    """

    def __init__(
        self,
        subdirs: list[str],
        exclude_globs: Optional[Iterable[str]] = None,
    ):
        """
        Initialize the scanner.

        Args:
            subdirs: Resource roots, in the order they should be packed
            exclude_globs: Gitignore-style patterns matched against virtual paths
        """
        self.subdirs = list(subdirs)
        self._exclude = build_exclude_spec(exclude_globs)
        self._seen: set[str] = set()
        self.stats = PackStats()

    def _is_excluded(self, virtual_path: str) -> bool:
        return self._exclude is not None and self._exclude.match_file(virtual_path)

    def scan(self) -> Generator[ResourceEntry, None, None]:
        """
        Scan all roots and yield one entry per file.

        Raises:
            OSError: On any traversal or read error.
        """
        for subdir in self.subdirs:
            for file_path in walk_resources(subdir):
                self.stats.files_scanned += 1
                virtual_path = to_virtual_path(file_path)

                if virtual_path in self._seen:
                    self.stats.duplicates_skipped += 1
                    continue
                self._seen.add(virtual_path)

                if self._is_excluded(virtual_path):
                    self.stats.files_excluded += 1
                    continue

                data = Path(file_path).read_bytes()

                self.stats.files_packed += 1
                self.stats.total_bytes += len(data)

                yield ResourceEntry(
                    path=Path(file_path),
                    virtual_path=virtual_path,
                    size_bytes=len(data),
                    data=data,
                )


def scan_resources(
    subdirs: list[str],
    exclude_globs: Optional[Iterable[str]] = None,
) -> tuple[list[ResourceEntry], PackStats]:
    """
    Convenience function to scan resource directories.

    Returns:
        Tuple of (list of ResourceEntry, PackStats)
    """
    start_time = time.time()
    scanner = ResourceScanner(subdirs, exclude_globs=exclude_globs)
    entries = list(scanner.scan())
    scanner.stats.processing_time_seconds = time.time() - start_time
    return entries, scanner.stats
