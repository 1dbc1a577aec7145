"""Engine configuration management helpers."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from flare_stats.cloudflare.base import DEFAULT_BASE_URL

DEFAULT_SETTINGS_PATH = "~/.flare-stats/settings.json"


def _str_to_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Invalid integer value: {value}") from exc


def _str_to_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Invalid number value: {value}") from exc


@dataclass(frozen=True)
class EngineConfig:
    """Immutable engine configuration loaded from env or files.

    ``max_concurrency`` of 0 leaves per-site fan-out unbounded.
    """

    api_base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = 30.0
    max_concurrency: int = 0
    settings_path: str = DEFAULT_SETTINGS_PATH

    def __post_init__(self) -> None:
        self.validate()

    @classmethod
    def from_env(cls) -> "EngineConfig":
        defaults = cls()
        return cls(
            api_base_url=os.getenv("FLARE_STATS_API_BASE_URL", defaults.api_base_url),
            timeout_seconds=_str_to_float(
                os.getenv("FLARE_STATS_TIMEOUT_SECONDS"), defaults.timeout_seconds
            ),
            max_concurrency=_str_to_int(
                os.getenv("FLARE_STATS_MAX_CONCURRENCY"), defaults.max_concurrency
            ),
            settings_path=os.getenv(
                "FLARE_STATS_SETTINGS_PATH", defaults.settings_path
            ),
        )

    @classmethod
    def from_file(cls, path: str) -> "EngineConfig":
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        raw = file_path.read_text()
        data: Dict[str, Any]
        suffix = file_path.suffix.lower()
        if suffix == ".json":
            data = json.loads(raw)
        elif suffix in {".yaml", ".yml"}:
            data = cls._load_yaml(raw)
        else:
            raise ValueError("Unsupported config format. Use JSON or YAML.")
        return cls(**cls._merge_with_defaults(data))

    @property
    def resolved_settings_path(self) -> Path:
        return Path(self.settings_path).expanduser()

    def validate(self) -> None:
        if not self.api_base_url:
            raise ValueError("api_base_url must be provided")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        if self.max_concurrency < 0:
            raise ValueError("max_concurrency must be non-negative")
        if not self.settings_path:
            raise ValueError("settings_path must be provided")

    @classmethod
    def _merge_with_defaults(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        defaults = cls()
        return {
            "api_base_url": data.get("api_base_url", defaults.api_base_url),
            "timeout_seconds": data.get("timeout_seconds", defaults.timeout_seconds),
            "max_concurrency": data.get("max_concurrency", defaults.max_concurrency),
            "settings_path": data.get("settings_path", defaults.settings_path),
        }

    @staticmethod
    def _load_yaml(raw: str) -> Dict[str, Any]:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("PyYAML is required to parse YAML config files") from exc
        return yaml.safe_load(raw) or {}
