"""
Runtime support for generated resource modules.

A generated `qrc.py` calls `initialize()` at import time with an explicit
`RuntimeConfig`. The config selects whether the embedded blob is loaded or the
resource directories are repacked from the live filesystem.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum

from .config import REPACK_ENV_VAR
from .packer import Resources, ResourceError, pack_entries, parse_resources
from .scanner import ResourceScanner
from .utils import parse_qrc_url


class LoadStrategy(str, Enum):
    """Where a generated module takes its resources from."""

    EMBEDDED = "embedded"
    REPACK = "repack"


@dataclass(frozen=True)
class RuntimeConfig:
    """Startup configuration for a generated resource module.

    Attributes:
        strategy: Load the embedded blob, or repack the directories on startup.
    """

    strategy: LoadStrategy = LoadStrategy.EMBEDDED

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RuntimeConfig:
        """Build a config from the environment.

        Repacking is selected when `QRC_REPACK` is exactly "1".
        """
        env = os.environ if environ is None else environ
        if env.get(REPACK_ENV_VAR) == "1":
            return cls(strategy=LoadStrategy.REPACK)
        return cls(strategy=LoadStrategy.EMBEDDED)


class ResourceRegistry:
    """
    Resources available to the running program.

    Packs are searched newest first, so a later load shadows earlier ones for
    the same virtual path.
    """

    def __init__(self) -> None:
        self._packs: list[Resources] = []

    def load(self, resources: Resources) -> None:
        self._packs.insert(0, resources)

    def clear(self) -> None:
        self._packs.clear()

    def _find(self, url: str) -> tuple[Resources, str] | None:
        path = parse_qrc_url(url)
        for pack in self._packs:
            if path in pack:
                return pack, path
        return None

    def exists(self, url: str) -> bool:
        return self._find(url) is not None

    def read(self, url: str) -> bytes:
        """
        Read a resource by URL.

        Raises:
            KeyError: If no loaded pack contains the resource.
            ValueError: If the URL is malformed.
        """
        found = self._find(url)
        if found is None:
            raise KeyError(f"resource not found: {url}")
        pack, path = found
        return pack.read(path)

    def paths(self) -> list[str]:
        """Return all visible virtual paths, sorted."""
        seen: set[str] = set()
        for pack in self._packs:
            seen.update(pack.paths())
        return sorted(seen)


default_registry = ResourceRegistry()


def load_resources(resources: Resources, registry: ResourceRegistry | None = None) -> None:
    """Make `resources` available through `registry` (the default registry if None)."""
    (registry or default_registry).load(resources)


def read_resource(url: str) -> bytes:
    """Read a resource from the default registry, e.g. `read_resource("qrc:///a/b.qml")`."""
    return default_registry.read(url)


def repack(
    subdirs: Iterable[str],
    exclude_globs: Iterable[str] | None = None,
    compress: bool = False,
) -> bytes:
    """
    Walk the resource directories and pack their current content.

    Raises:
        OSError: On any traversal or read error.
    """
    scanner = ResourceScanner(list(subdirs), exclude_globs=exclude_globs)
    return pack_entries(scanner.scan(), compress=compress).bytes()


def initialize(
    config: RuntimeConfig,
    embedded: bytes,
    repacker: Callable[[], bytes],
    registry: ResourceRegistry | None = None,
) -> Resources:
    """
    Load a generated module's resources according to `config`.

    Args:
        config: Selects the embedded or repack strategy.
        embedded: Blob embedded in the generated module.
        repacker: Routine that repacks the original directories.
        registry: Registry to load into (default registry if None).

    Returns:
        The loaded resources.

    Raises:
        ResourceError: If repacking fails or the data cannot be parsed.
    """
    if config.strategy is LoadStrategy.REPACK:
        try:
            data = repacker()
        except Exception as e:
            raise ResourceError(f"cannot repack qrc resources: {e}") from e
    else:
        data = embedded

    try:
        resources = parse_resources(data)
    except ResourceError as e:
        raise ResourceError(f"cannot parse bundled resources data: {e}") from e

    load_resources(resources, registry)
    return resources
