import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import toml

DEFAULT_MAX_TOTAL_SIZE = 2 * 1024 * 1024 * 1024  # 2 GiB uncompressed
DEFAULT_MAX_ENTRIES = 100_000


@dataclass(frozen=True)
class AnalysisLimits:
    """Bounds applied while extracting a package"""

    max_total_size: int = DEFAULT_MAX_TOTAL_SIZE
    max_entries: int = DEFAULT_MAX_ENTRIES
    scratch_dir: Optional[Path] = None  # None means the system temp dir

    def __post_init__(self):
        if self.max_total_size <= 0:
            raise ValueError("max_total_size must be positive")
        if self.max_entries <= 0:
            raise ValueError("max_entries must be positive")


def get_config_path() -> Path:
    """Return the path to the configuration file."""
    env_path = os.environ.get("IPAINSPECT_CONFIG")
    if env_path:
        return Path(env_path)
    return Path.home() / ".ipainspect" / "config.toml"


def load_config() -> Dict[str, Any]:
    """Load configuration from TOML file."""
    config_path = get_config_path()
    if not config_path.exists():
        return {}

    try:
        return toml.load(config_path)
    except (toml.TomlDecodeError, OSError) as e:
        raise ValueError(f"Failed to load config {config_path}: {e}")


def _read_int(name: str, env_value: Optional[str], config_value: Any, default: int) -> int:
    raw = env_value if env_value is not None else config_value
    if raw is None:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid value for {name}: {raw!r}")


def get_analysis_limits(
    max_total_size: Optional[int] = None, max_entries: Optional[int] = None
) -> AnalysisLimits:
    """Build limits from arguments, environment, then config file."""
    config = load_config()
    limits_config = config.get("limits", {})
    workspace_config = config.get("workspace", {})

    if max_total_size is None:
        max_total_size = _read_int(
            "max_total_size",
            os.environ.get("IPAINSPECT_MAX_TOTAL_SIZE"),
            limits_config.get("max_total_size"),
            DEFAULT_MAX_TOTAL_SIZE,
        )
    if max_entries is None:
        max_entries = _read_int(
            "max_entries",
            os.environ.get("IPAINSPECT_MAX_ENTRIES"),
            limits_config.get("max_entries"),
            DEFAULT_MAX_ENTRIES,
        )

    scratch_dir = os.environ.get("IPAINSPECT_SCRATCH_DIR") or workspace_config.get(
        "scratch_dir"
    )

    return AnalysisLimits(
        max_total_size=max_total_size,
        max_entries=max_entries,
        scratch_dir=Path(scratch_dir).expanduser() if scratch_dir else None,
    )
