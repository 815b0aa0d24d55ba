"""
Configuration file loader for genqrc.

Supports loading configuration from:
- genqrc.toml / .genqrc.toml
- genqrc.yml / .genqrc.yml / genqrc.yaml / .genqrc.yaml

CLI flags override config file values; the GENQRC_PACKAGE environment
variable overrides both for the package name.
"""

from __future__ import annotations

import importlib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .config import DEFAULT_OUTPUT_NAME, GenerateOptions
from .utils import resolve_package_name

# Optional runtime modules (loaded via importlib); typed as Any to avoid stub issues.
tomllib: Any | None
yaml: Any | None

# Optional imports for config file parsing
try:
    import tomllib as _tomllib  # Python 3.11+
except ImportError:
    try:
        _tomllib = importlib.import_module("tomli")
    except ImportError:
        _tomllib = None
tomllib = _tomllib

try:
    yaml = importlib.import_module("yaml")
except ImportError:
    yaml = None


# Config file search order (first found wins)
CONFIG_FILE_NAMES = [
    "genqrc.toml",
    ".genqrc.toml",
    "genqrc.yml",
    ".genqrc.yml",
    "genqrc.yaml",
    ".genqrc.yaml",
]

CONFIG_SECTION = "genqrc"


class ConfigError(Exception):
    """Error loading or applying configuration."""

    pass


@dataclass
class ProjectConfig:
    """
    Project-level configuration loaded from config files.

    All fields are optional - CLI flags will override any values set here.
    """

    package: str | None = None
    output: Path | None = None
    dirs: list[str] | None = None
    exclude_globs: list[str] | None = None
    compress: bool | None = None

    # Internal: path the config was loaded from
    _config_file: Path | None = None

    @property
    def config_file(self) -> Path | None:
        return self._config_file

    def to_dict(self) -> dict[str, Any]:
        """Convert set values to a plain dictionary."""
        result: dict[str, Any] = {}
        if self.package is not None:
            result["package"] = self.package
        if self.output is not None:
            result["output"] = str(self.output)
        if self.dirs is not None:
            result["dirs"] = list(self.dirs)
        if self.exclude_globs is not None:
            result["exclude_globs"] = list(self.exclude_globs)
        if self.compress is not None:
            result["compress"] = self.compress
        return result


def find_config_file(root: Path) -> Path | None:
    """
    Find a configuration file in a directory.

    Args:
        root: Directory to search (usually the working directory)

    Returns:
        Path to the config file, or None if not found
    """
    for name in CONFIG_FILE_NAMES:
        config_path = root / name
        if config_path.exists() and config_path.is_file():
            return config_path
    return None


def _parse_toml(path: Path) -> dict[str, Any]:
    """Parse a TOML config file into a dict.

    Raises:
        ConfigError: If TOML parsing support is unavailable.
    """
    if tomllib is None:
        raise ConfigError(
            "TOML support requires 'tomli' package (Python < 3.11) or Python 3.11+. "
            "Install with: pip install tomli"
        )

    with open(path, "rb") as f:
        data: dict[str, Any] = tomllib.load(f)

    # Support both flat and nested [genqrc] section
    if CONFIG_SECTION in data and isinstance(data[CONFIG_SECTION], dict):
        return dict(data[CONFIG_SECTION])
    return data


def _parse_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML config file into a dict.

    Raises:
        ConfigError: If PyYAML is not installed.
    """
    if yaml is None:
        raise ConfigError(
            "YAML support requires 'pyyaml' package. Install with: pip install pyyaml"
        )

    with open(path, encoding="utf-8") as f:
        raw_data = yaml.safe_load(f)

    if raw_data is None:
        return {}
    if not isinstance(raw_data, dict):
        raise ConfigError(f"{path}: expected a mapping at the top level")

    data: dict[str, Any] = dict(raw_data)

    if CONFIG_SECTION in data and isinstance(data[CONFIG_SECTION], dict):
        return dict(data[CONFIG_SECTION])
    return data


def _normalize_list(value: Any, key: str) -> list[str] | None:
    """Normalize a config value to a list of non-empty strings.

    Accepts a comma-separated string or a list.
    """
    if value is None:
        return None

    if isinstance(value, str):
        value = value.split(",")

    if not isinstance(value, (list, tuple)):
        raise ConfigError(f"'{key}' must be a list or a comma-separated string")

    return [str(v).strip() for v in value if str(v).strip()]


def load_config(root: Path, config_path: Path | None = None) -> ProjectConfig:
    """
    Load configuration from a config file.

    Args:
        root: Directory searched when no explicit path is given
        config_path: Explicit path to config file (optional)

    Returns:
        ProjectConfig with loaded values (unset values remain None).

    Raises:
        ConfigError: If an explicit config file is missing, or a config file
            cannot be parsed.
    """
    if config_path is None:
        config_path = find_config_file(root)
        if config_path is None:
            return ProjectConfig()
    elif not config_path.is_file():
        raise ConfigError(f"config file not found: {config_path}")

    suffix = config_path.suffix.lower()
    try:
        if suffix == ".toml":
            data = _parse_toml(config_path)
        elif suffix in (".yml", ".yaml"):
            data = _parse_yaml(config_path)
        else:
            raise ConfigError(f"unsupported config file type: {config_path}")
    except ConfigError:
        raise
    except Exception as e:
        raise ConfigError(f"cannot parse {config_path}: {e}") from e

    config = ProjectConfig(_config_file=config_path)

    if "package" in data:
        config.package = str(data["package"])
    if "output" in data:
        config.output = Path(str(data["output"]))
    config.dirs = _normalize_list(data.get("dirs") or data.get("subdirs"), "dirs")
    config.exclude_globs = _normalize_list(
        data.get("exclude_globs") or data.get("exclude"), "exclude_globs"
    )
    if "compress" in data:
        if not isinstance(data["compress"], bool):
            raise ConfigError(f"'compress' must be true or false, got {data['compress']!r}")
        config.compress = data["compress"]

    return config


def merge_cli_with_config(
    config: ProjectConfig,
    *,
    # CLI arguments (None means not specified on CLI)
    dirs: list[str] | None = None,
    package: str | None = None,
    output: Path | None = None,
    exclude: list[str] | None = None,
    compress: bool | None = None,
    environ: Mapping[str, str] | None = None,
) -> GenerateOptions:
    """Merge CLI arguments with config file values (CLI wins).

    Args:
        config: Config loaded from file (may have unset values).
        dirs: Resource directories from the command line.
        package: `--package` value (optional).
        output: `--output` value (optional).
        exclude: `--exclude` patterns (optional).
        compress: `--compress`/`--no-compress` value (None if not given).
        environ: Environment used for package name resolution.

    Returns:
        Resolved GenerateOptions.

    Raises:
        ValueError: If no resource directories were given anywhere.
    """
    # Directories: CLI replaces config
    subdirs = list(dirs) if dirs else list(config.dirs or [])

    if output is not None:
        output_path = output
    elif config.output is not None:
        output_path = config.output
    else:
        output_path = Path(DEFAULT_OUTPUT_NAME)

    if exclude:
        exclude_globs = list(exclude)
    else:
        exclude_globs = list(config.exclude_globs or [])

    if compress is not None:
        compress_value = compress
    elif config.compress is not None:
        compress_value = config.compress
    else:
        compress_value = False

    return GenerateOptions(
        package_name=resolve_package_name(package, config.package, environ),
        subdirs=subdirs,
        output=output_path,
        exclude_globs=exclude_globs,
        compress=compress_value,
    )
