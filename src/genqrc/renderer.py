"""
Module rendering for genqrc.

Renders the generated resource module from a Jinja2 template and writes it
atomically, so a failed run never leaves a truncated module behind.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined

from .config import BYTES_PER_LINE, REPACK_ENV_VAR, GenerateOptions
from .utils import is_valid_package_name

# The generated module only depends on genqrc.runtime
MODULE_TEMPLATE = '''\
"""Resource pack for package {{ package_name }}.

This file is automatically generated by genqrc. Do not edit.

Resources load when this module is imported. Set {{ repack_env_var }}=1 to repack
the resource directories from the filesystem instead of using the embedded
data.
"""

from genqrc.runtime import RuntimeConfig, initialize, repack

QRC_PACKAGE = {{ package_name | pyrepr }}
QRC_SUBDIRS = {{ subdirs | pyrepr }}
QRC_EXCLUDE_GLOBS = {{ exclude_globs | pyrepr }}
QRC_COMPRESS = {{ compress | pyrepr }}


def qrc_repack_resources():
    return repack(QRC_SUBDIRS, exclude_globs=QRC_EXCLUDE_GLOBS, compress=QRC_COMPRESS)


def init(config=None, registry=None):
    if config is None:
        config = RuntimeConfig.from_env()
    return initialize(config, qrc_resources_data, qrc_repack_resources, registry=registry)


qrc_resources_data = {{ resources_data | bytes_literal }}

init(RuntimeConfig.from_env())
'''


def bytes_literal(data: bytes, width: int = BYTES_PER_LINE) -> str:
    """Render bytes as a Python literal, wrapped into parenthesized lines.

    Args:
        data: Bytes to render.
        width: Number of source bytes per line.

    Returns:
        Python source evaluating to `data`.
    """
    if len(data) <= width:
        return repr(bytes(data))
    lines = [
        "    " + repr(bytes(data[i:i + width]))
        for i in range(0, len(data), width)
    ]
    return "(\n" + "\n".join(lines) + "\n)"


def _create_environment() -> Environment:
    env = Environment(
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )
    env.filters["pyrepr"] = repr
    env.filters["bytes_literal"] = bytes_literal
    return env


_env = _create_environment()


def build_template_context(options: GenerateOptions, resources_data: bytes) -> dict[str, Any]:
    """Build the variables substituted into the module template.

    Raises:
        ValueError: If the package name is not a valid Python package name.
    """
    if not is_valid_package_name(options.package_name):
        raise ValueError(f"invalid package name: {options.package_name!r}")
    return {
        "package_name": options.package_name,
        "subdirs": list(options.subdirs),
        "exclude_globs": list(options.exclude_globs),
        "compress": bool(options.compress),
        "resources_data": bytes(resources_data),
        "repack_env_var": REPACK_ENV_VAR,
    }


def render_module(options: GenerateOptions, resources_data: bytes) -> str:
    """Render the generated module source.

    Args:
        options: Resolved generation options.
        resources_data: Packed resource blob to embed.

    Returns:
        Python source of the generated module.
    """
    context = build_template_context(options, resources_data)
    return _env.from_string(MODULE_TEMPLATE).render(**context)


def write_output(output_path: Path, content: str) -> Path:
    """Atomically write `content` to `output_path`.

    The content goes to a temporary file in the destination directory first
    and replaces the target only once fully written. On failure the temporary
    file is removed and any existing target is left untouched.

    Returns:
        The path written.
    """
    output_path = Path(output_path)
    directory = output_path.parent

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{output_path.name}.", suffix=".tmp", dir=directory
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, output_path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    return output_path


def generate_module(options: GenerateOptions, resources_data: bytes) -> Path:
    """Render the module for `options` and write it to `options.output`."""
    content = render_module(options, resources_data)
    return write_output(options.output, content)
