"""
Configuration for nfs-bench.

Three layers, later ones win: built-in defaults, an optional JSON/YAML config
file (--config), and command-line flags.
"""

import json
import os
import re
from dataclasses import dataclass, fields, replace
from typing import Optional

import yaml

from core.errors import ConfigError

DEFAULT_LOG_DIR = os.path.join("~", "nfs_bench_logs")
DEFAULT_DD_SIZE = "2G"
DEFAULT_FIO_RUNTIME = 60

# numfmt --from=iec style suffixes
_SIZE_UNITS = {
    "": 1,
    "K": 1024,
    "M": 1024 ** 2,
    "G": 1024 ** 3,
    "T": 1024 ** 4,
}
_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*([KMGT]?)(?:I?B)?$")


def parse_size(size_str) -> int:
    """Parse an IEC size string ('2G', '512M', '1.5GiB') into bytes."""
    text = str(size_str).strip().upper()
    match = _SIZE_RE.match(text)
    if not match:
        raise ValueError(f"Invalid size format: {size_str}")
    return int(float(match.group(1)) * _SIZE_UNITS[match.group(2)])


@dataclass
class BenchConfig:
    """Effective settings for one nfs-bench run."""
    log_dir: str = DEFAULT_LOG_DIR
    dd_size: str = DEFAULT_DD_SIZE
    fio_runtime: int = DEFAULT_FIO_RUNTIME
    mount: Optional[str] = None
    iperf_host: Optional[str] = None
    unattended: bool = False
    skip_deps: bool = False
    drop_caches: bool = True

    @property
    def log_dir_path(self) -> str:
        return os.path.expanduser(self.log_dir)

    def merged(self, overrides: dict) -> "BenchConfig":
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        return replace(self, **{k: v for k, v in overrides.items() if k in known and v is not None})


def load_config_file(path: str) -> dict:
    """
    Load a config file (JSON or YAML).

    Auto-detects format by extension (.json, .yaml, .yml) or tries JSON then YAML.

    Raises:
        ConfigError on missing files or parse errors.
    """
    if not os.path.isfile(path):
        raise ConfigError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()

    ext = os.path.splitext(path)[1].lower()

    if ext == ".json":
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file: {e}") from e
    elif ext in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in config file: {e}") from e
    else:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            try:
                data = yaml.safe_load(raw)
            except yaml.YAMLError as e:
                raise ConfigError(f"Could not parse config file as JSON or YAML: {path}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config must be a JSON/YAML object (dict)")
    return data


def validate_config(config: dict) -> list:
    """
    Validate a config dict.

    Returns list of error messages (empty = valid).
    """
    errors = []
    known = {f.name for f in fields(BenchConfig)}

    for key in config:
        if key not in known:
            errors.append(f"Unknown config key: '{key}'")

    dd_size = config.get("dd_size")
    if dd_size is not None:
        try:
            if parse_size(dd_size) < 1024 ** 2:
                errors.append(f"dd_size must be at least 1M (got '{dd_size}')")
        except ValueError:
            errors.append(f"dd_size must be a size like 1G or 512M (got '{dd_size}')")

    runtime = config.get("fio_runtime")
    if runtime is not None and (isinstance(runtime, bool) or not isinstance(runtime, int) or runtime < 1):
        errors.append(f"fio_runtime must be a positive integer (got {runtime})")

    for key in ("unattended", "skip_deps", "drop_caches"):
        value = config.get(key)
        if value is not None and not isinstance(value, bool):
            errors.append(f"{key} must be true or false (got {value})")

    for key in ("log_dir", "mount", "iperf_host"):
        value = config.get(key)
        if value is not None and not isinstance(value, str):
            errors.append(f"{key} must be a string (got {value})")
        elif key in ("mount", "iperf_host") and value is not None and not value.strip():
            errors.append(f"{key} must not be blank")

    return errors


def build_config(file_path: Optional[str] = None, overrides: Optional[dict] = None) -> BenchConfig:
    """Combine defaults, an optional config file, and CLI overrides."""
    config = BenchConfig()
    if file_path:
        data = load_config_file(file_path)
        errors = validate_config(data)
        if errors:
            raise ConfigError("Config file validation failed:\n" + "\n".join(f"  • {e}" for e in errors))
        config = config.merged(data)
    if overrides:
        config = config.merged(overrides)
    return config
