"""Configuration loading helpers for the IPIndia scraper."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from .models import Settings

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
DEFAULT_CONFIG_FILENAME = "config.yaml"

_TRUTHY = {"1", "true", "yes", "on"}

# env var -> dotted settings path
ENV_OVERRIDES: dict[str, str] = {
    "DB_HOST": "database.host",
    "DB_PORT": "database.port",
    "DB_USER": "database.user",
    "DB_PASSWORD": "database.password",
    "DB_NAME": "database.name",
    "DATABASE_URL": "database.url",
    "TEST_MODE": "dry_run",
    "API_KEY": "api_key",
    "APP_ENV": "environment",
    "SCRAPER_TIMEZONE": "timezone",
}


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _set_dotted(payload: dict, dotted: str, value: Any) -> None:
    *parents, leaf = dotted.split(".")
    cursor = payload
    for key in parents:
        nested = cursor.get(key)
        if not isinstance(nested, dict):
            nested = {}
            cursor[key] = nested
        cursor = nested
    cursor[leaf] = value


def apply_env_overrides(payload: dict, environ: Mapping[str, str]) -> dict:
    """Return a copy of ``payload`` with recognised environment variables applied."""

    merged = json.loads(json.dumps(payload))
    for env_name, dotted in ENV_OVERRIDES.items():
        raw = environ.get(env_name)
        if raw is None:
            continue
        value: Any = raw
        if dotted == "dry_run":
            value = raw.strip().lower() in _TRUTHY
        _set_dotted(merged, dotted, value)
    return merged


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get("IPINDIA_SCRAPER_HOME")
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.logs_dir = (root / "logs").resolve()

    def config_path(self) -> Path:
        env_path = os.environ.get("IPINDIA_SCRAPER_CONFIG")
        if env_path:
            return Path(env_path).expanduser().resolve()
        return self.project_root / DEFAULT_CONFIG_FILENAME


class ConfigRepository:
    """Load settings from an optional file, then from the environment."""

    def __init__(
        self,
        locator: ConfigLocator | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.locator = locator or ConfigLocator()
        self.environ = os.environ if environ is None else environ
        self._cache: Settings | None = None

    def load_settings(self, **overrides: Any) -> Settings:
        if self._cache is not None and not overrides:
            return self._cache
        path = self.locator.config_path()
        payload: dict = {}
        if path.exists():
            if path.suffix not in CONFIG_EXTENSIONS:
                raise ValueError(f"Unsupported configuration file type: {path}")
            payload = _read_file(path)
        payload = apply_env_overrides(payload, self.environ)
        payload.update(overrides)
        settings = Settings.model_validate(payload)
        if not overrides:
            self._cache = settings
        return settings


__all__ = [
    "CONFIG_EXTENSIONS",
    "ConfigLocator",
    "ConfigRepository",
    "ENV_OVERRIDES",
    "apply_env_overrides",
]
