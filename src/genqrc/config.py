"""
Configuration models and defaults for genqrc.

Holds the environment variable names, defaults and the small data models
passed between the scanner, packer and renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

# Set by the invoking environment; overrides --package when non-empty
PACKAGE_ENV_VAR = "GENQRC_PACKAGE"

# Read only by generated modules at import time
REPACK_ENV_VAR = "QRC_REPACK"

DEFAULT_PACKAGE_NAME = "main"
DEFAULT_OUTPUT_NAME = "qrc.py"

# URL scheme used to address packed resources
QRC_SCHEME = "qrc"

# Fixed timestamp for pack members so output is reproducible (earliest ZIP date)
PACK_DATE_TIME = (1980, 1, 1, 0, 0, 0)

# Bytes per line when rendering the embedded literal
BYTES_PER_LINE = 48


@dataclass
class ResourceEntry:
    """A file gathered for packing.

    Attributes:
        path: Path to the file on disk, as reached during traversal.
        virtual_path: Slash-normalized path the resource is addressed by.
        size_bytes: Size of the content in bytes.
        data: Full file content.
    """

    path: Path
    virtual_path: str
    size_bytes: int
    data: bytes = field(repr=False)


@dataclass
class PackStats:
    """Statistics collected while scanning and packing."""

    files_scanned: int = 0
    files_packed: int = 0
    files_excluded: int = 0
    duplicates_skipped: int = 0
    total_bytes: int = 0
    packed_bytes: int = 0
    processing_time_seconds: float = 0.0


@dataclass
class GenerateOptions:
    """Resolved settings for a single generation run.

    Attributes:
        package_name: Package the generated module is declared under.
        subdirs: Directories to pack, in the order given.
        output: Path of the generated module.
        exclude_globs: Gitignore-style patterns matched against virtual paths.
        compress: Whether pack members are DEFLATE-compressed.
    """

    package_name: str = DEFAULT_PACKAGE_NAME
    subdirs: list[str] = field(default_factory=list)
    output: Path = field(default_factory=lambda: Path(DEFAULT_OUTPUT_NAME))
    exclude_globs: list[str] = field(default_factory=list)
    compress: bool = False

    def __post_init__(self) -> None:
        """Normalize and validate the options.

        Raises:
            ValueError: If no subdirectory was given.
        """
        if not self.subdirs:
            raise ValueError("must provide at least one subdirectory path")
        self.output = Path(self.output)
        self.subdirs = [str(s) for s in self.subdirs]
        self.exclude_globs = [str(g) for g in self.exclude_globs]
