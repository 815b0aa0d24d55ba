"""
Utility functions for genqrc.

Includes path normalization, package name resolution and qrc URL handling.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from .config import DEFAULT_PACKAGE_NAME, PACKAGE_ENV_VAR, QRC_SCHEME


def to_slash(path: str) -> str:
    """Replace the host path separators with forward slashes.

    Only `os.sep` and `os.altsep` are replaced; on POSIX a backslash is an
    ordinary file name character and is kept.

    Args:
        path: Path string using host separators.

    Returns:
        Path using forward slashes.
    """
    for sep in (os.sep, os.altsep):
        if sep and sep != "/":
            path = path.replace(sep, "/")
    return path


def to_virtual_path(path: str | os.PathLike[str]) -> str:
    """Convert a filesystem path into the virtual path it is packed under.

    The path is cleaned (redundant separators and `.` segments removed) and
    host separators are replaced by forward slashes.

    Args:
        path: Filesystem path as reached during traversal.

    Returns:
        Slash-normalized virtual path.
    """
    return to_slash(os.path.normpath(os.fspath(path)))


def is_valid_package_name(name: str) -> bool:
    """Check whether `name` is a (possibly dotted) Python package name."""
    if not name:
        return False
    return all(part.isidentifier() for part in name.split("."))


def resolve_package_name(
    cli_value: str | None,
    config_value: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Resolve the package name a generated module is declared under.

    Precedence: non-empty `GENQRC_PACKAGE` environment variable, then the CLI
    flag, then the config file value, then the default.

    Args:
        cli_value: Value of `--package` (None if not given).
        config_value: Value from the project config file (None if unset).
        environ: Environment mapping (defaults to `os.environ`).

    Returns:
        The package name to use.
    """
    env = os.environ if environ is None else environ
    env_value = env.get(PACKAGE_ENV_VAR, "")
    if env_value:
        return env_value
    if cli_value:
        return cli_value
    if config_value:
        return config_value
    return DEFAULT_PACKAGE_NAME


def parse_qrc_url(url: str) -> str:
    """Extract the virtual path from a resource URL.

    Accepts `qrc:///some/path`, `qrc://some/path`, `qrc:some/path` and a bare
    `some/path`.

    Args:
        url: Resource URL or virtual path.

    Returns:
        The virtual path component.

    Raises:
        ValueError: If the URL uses a scheme other than qrc or has no path.
    """
    prefix = f"{QRC_SCHEME}:"
    if url.startswith(prefix):
        path = url[len(prefix):].lstrip("/")
    elif "://" in url:
        raise ValueError(f"Unsupported resource URL scheme: {url}")
    else:
        path = url
    if not path:
        raise ValueError(f"Resource URL has no path: {url}")
    return path


def format_size(num_bytes: int) -> str:
    """Format a byte count for human-readable output."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"
