"""Configuration management for commitbot."""

from __future__ import annotations

import os
import tomllib
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .exceptions import ConfigError

CONFIG_ENV_VAR = "COMMITBOT_CONFIG"
CONFIG_FILE_NAME = "commitbot.toml"

DEFAULT_PROVIDERS: Dict[str, Dict[str, Optional[str]]] = {
    "openai": {
        "model": "gpt-5-nano",
        "endpoint": "https://api.openai.com",
        "api_key_env": "OPENAI_API_KEY",
    },
    "ollama": {
        "model": "llama3.1",
        "endpoint": "http://localhost:11434",
        "api_key_env": None,
    },
}

DEFAULT_MAX_CONCURRENT_REQUESTS = 4
DEFAULT_REQUEST_TIMEOUT = 90.0

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Config:
    """Resolved runtime configuration handed to drivers and the dispatcher."""

    provider: str
    model: str
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    max_concurrent_requests: int = DEFAULT_MAX_CONCURRENT_REQUESTS
    stream: bool = True
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @property
    def model_disabled(self) -> bool:
        """``model = "none"`` turns every model call into a dummy response."""
        return self.model.strip().lower() == "none"

    @property
    def endpoint(self) -> str:
        """Base URL with provider default applied and trailing slash removed."""
        base = self.base_url or DEFAULT_PROVIDERS[self.provider]["endpoint"] or ""
        return base.rstrip("/")

    def require_credentials(self) -> None:
        """Fail early when the selected provider needs a key we do not have."""
        if self.model_disabled:
            return
        key_env = DEFAULT_PROVIDERS[self.provider]["api_key_env"]
        if key_env and not self.api_key:
            raise ConfigError(
                f"{key_env} (or --api-key) is required for provider "
                f"'{self.provider}' unless --no-model or model=none is used"
            )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if data.get("api_key"):
            data["api_key"] = "***"
        return data


def config_file_path(env: Optional[Mapping[str, str]] = None) -> Path:
    """Return the TOML config location (``~/.config/commitbot.toml``)."""
    env_map = os.environ if env is None else env
    override = env_map.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / CONFIG_FILE_NAME


def load_file_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read the optional TOML config file; a missing file is an empty config."""
    cfg_path = path or config_file_path()
    if not cfg_path.exists():
        return {}
    try:
        with cfg_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to read config file {cfg_path}: {e}") from e
    return data


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUTHY:
        return True
    if text in _FALSY:
        return False
    raise ConfigError(f"Invalid boolean for {name}: {value!r}")


def _parse_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid integer for {name}: {value!r}") from None


def _parse_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid number for {name}: {value!r}") from None


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None and value != "":
            return value
    return None


def load_config(
    *,
    overrides: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
    config_path: Optional[Path] = None,
) -> Config:
    """Build configuration from overrides, environment, config file, defaults.

    Precedence, highest first:
      1. ``overrides`` (CLI flags)
      2. ``COMMITBOT_*`` environment variables
      3. ``~/.config/commitbot.toml``
      4. ``DEFAULT_PROVIDERS`` for the selected provider
    """
    overrides = dict(overrides or {})
    env_map: Mapping[str, str] = os.environ if env is None else env
    file_cfg = load_file_config(config_path or config_file_path(env_map))

    provider = str(
        _first(
            overrides.get("provider"),
            env_map.get("COMMITBOT_PROVIDER"),
            file_cfg.get("provider"),
            "openai",
        )
    ).strip().lower()
    if provider not in DEFAULT_PROVIDERS:
        raise ConfigError(
            f"Unsupported provider: {provider!r} "
            f"(expected one of {', '.join(sorted(DEFAULT_PROVIDERS))})"
        )
    defaults = DEFAULT_PROVIDERS[provider]

    model = str(
        _first(
            overrides.get("model"),
            env_map.get("COMMITBOT_MODEL"),
            file_cfg.get("model"),
            defaults["model"],
        )
    )

    base_url = _first(
        overrides.get("base_url"),
        env_map.get("COMMITBOT_BASE_URL"),
        file_cfg.get("base_url"),
    )

    key_env = defaults["api_key_env"]
    api_key = _first(
        overrides.get("api_key"),
        env_map.get(key_env) if key_env else None,
        file_cfg.get("api_key"),
    )

    max_concurrent = _parse_int(
        "max_concurrent_requests",
        _first(
            overrides.get("max_concurrent_requests"),
            env_map.get("COMMITBOT_MAX_CONCURRENT_REQUESTS"),
            file_cfg.get("max_concurrent_requests"),
            DEFAULT_MAX_CONCURRENT_REQUESTS,
        ),
    )
    if max_concurrent < 0:
        raise ConfigError("max_concurrent_requests must not be negative")

    stream = _parse_bool(
        "stream",
        _first(
            overrides.get("stream"),
            env_map.get("COMMITBOT_STREAM"),
            file_cfg.get("stream"),
            True,
        ),
    )

    request_timeout = _parse_float(
        "request_timeout",
        _first(
            overrides.get("request_timeout"),
            env_map.get("COMMITBOT_REQUEST_TIMEOUT"),
            file_cfg.get("request_timeout"),
            DEFAULT_REQUEST_TIMEOUT,
        ),
    )
    if request_timeout <= 0:
        raise ConfigError("request_timeout must be positive")

    return Config(
        provider=provider,
        model=model,
        base_url=str(base_url) if base_url else None,
        api_key=str(api_key) if api_key else None,
        max_concurrent_requests=max_concurrent,
        stream=stream,
        request_timeout=request_timeout,
    )


def describe_provider(provider: str) -> str:
    meta = DEFAULT_PROVIDERS.get(provider)
    if not meta:
        return provider
    return f"{provider} (default model: {meta['model']})"
