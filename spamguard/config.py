"""Runtime settings for SpamGuard.

Settings come from a YAML file (``~/.spamguard/config.yaml`` by default)
and may be overridden per field by ``SPAMGUARD_<FIELD>`` environment
variables, e.g. ``SPAMGUARD_API_KEY`` or ``SPAMGUARD_SKIP_POSTS``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from spamguard.exceptions import ConfigurationError

ENV_PREFIX = "SPAMGUARD_"
DEFAULT_CONFIG_PATH = Path.home() / ".spamguard" / "config.yaml"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class Settings:
    """Recognised configuration options."""

    enabled: bool = False
    api_key: str = ""
    base_url: str = "http://localhost"
    skip_trust_level: int = 1
    skip_posts: int = 5
    notify_user: bool = True
    transmit_email: bool = True
    review_users: bool = True
    max_check_attempts: int = 5
    request_timeout: float = 10.0
    sweep_batch_size: int = 100
    job_max_retries: int = 3
    job_retry_delay: float = 1.0
    data_dir: str = str(Path.home() / ".spamguard")

    def __post_init__(self) -> None:
        if not 0 <= self.skip_trust_level <= 4:
            raise ConfigurationError(
                "skip_trust_level must be between 0 and 4",
                {"skip_trust_level": self.skip_trust_level},
            )
        for name in ("skip_posts", "max_check_attempts", "sweep_batch_size", "job_max_retries"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative", {name: getattr(self, name)})
        if self.max_check_attempts == 0:
            raise ConfigurationError("max_check_attempts must be at least 1")
        if self.request_timeout <= 0:
            raise ConfigurationError(
                "request_timeout must be positive", {"request_timeout": self.request_timeout}
            )

    @property
    def configured(self) -> bool:
        """Return *True* when an Akismet API key is present."""
        return bool(self.api_key)

    @property
    def active(self) -> bool:
        """Return *True* when screening is switched on and has a key."""
        return self.enabled and self.configured

    @property
    def data_path(self) -> Path:
        return Path(self.data_dir).expanduser()

    def with_overrides(self, **kwargs: Any) -> Settings:
        return replace(self, **kwargs)


def _coerce(name: str, raw: Any, target: type) -> Any:
    if target is bool:
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ConfigurationError(f"Invalid boolean for {name}", {name: raw})
    if target is int:
        try:
            return int(raw)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid integer for {name}", {name: raw}) from None
    if target is float:
        try:
            return float(raw)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid number for {name}", {name: raw}) from None
    return "" if raw is None else str(raw)


_FIELD_TYPES = {"bool": bool, "int": int, "float": float, "str": str}


def load_settings(
    path: Optional[str | Path] = None,
    environ: Optional[dict[str, str]] = None,
) -> Settings:
    """Load settings from YAML, then apply ``SPAMGUARD_*`` environment overrides.

    A missing file is not an error; defaults are used instead.
    """
    env = os.environ if environ is None else environ
    config_path = Path(path) if path else Path(env.get(ENV_PREFIX + "CONFIG", DEFAULT_CONFIG_PATH))

    data: dict[str, Any] = {}
    if config_path.exists():
        try:
            loaded = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Could not parse {config_path}: {exc}") from exc
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping")
        data = loaded.get("spamguard", loaded)

    values: dict[str, Any] = {}
    for f in fields(Settings):
        target = _FIELD_TYPES[f.type] if isinstance(f.type, str) else f.type
        env_key = ENV_PREFIX + f.name.upper()
        if env_key in env:
            values[f.name] = _coerce(f.name, env[env_key], target)
        elif f.name in data:
            values[f.name] = _coerce(f.name, data[f.name], target)

    return Settings(**values)
