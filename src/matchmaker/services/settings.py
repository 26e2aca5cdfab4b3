# src/matchmaker/services/settings.py
from __future__ import annotations
from dataclasses import dataclass, asdict, fields, replace
import os
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import yaml
from dotenv import dotenv_values

from matchmaker.config import const


class ConfigError(ValueError):
    """Invalid configuration value or unreadable config file."""


# CamelCase keys of the legacy config.json format
_ALIASES: Dict[str, str] = {
    "HttpPort": "http_port",
    "HttpsPort": "https_port",
    "UseHTTPS": "use_https",
    "MatchmakerPort": "control_port",
    "LogToFile": "log_to_file",
}


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off", ""}:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _to_port(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"not a port: {value!r}")
    port = int(value)
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range: {port}")
    return port


def _to_positive_float(value: Any) -> float:
    number = float(value)
    if number < 0:
        raise ValueError(f"must not be negative: {number}")
    return number


def _to_positive_int(value: Any) -> int:
    number = int(value)
    if number < 1:
        raise ValueError(f"must be at least 1: {number}")
    return number


_COERCE: Dict[str, Callable[[Any], Any]] = {
    "http_port": _to_port,
    "https_port": _to_port,
    "use_https": _to_bool,
    "control_port": _to_port,
    "host": str,
    "log_to_file": _to_bool,
    "logs_dir": str,
    "log_level": lambda v: str(v).upper(),
    "enable_rest_api": _to_bool,
    "enable_redirection_links": _to_bool,
    "cert_file": str,
    "key_file": str,
    "allocation_cooldown_sec": _to_positive_float,
    "retry_seconds": _to_positive_int,
}


def _coerce(values: Mapping[str, Any], origin: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, raw in values.items():
        name = _ALIASES.get(key, key)
        conv = _COERCE.get(name)
        if conv is None:
            continue
        try:
            out[name] = conv(raw)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{origin}: invalid value for {key}: {e}") from e
    return out


def load_config_file(path: str | Path) -> Dict[str, Any]:
    """Read a YAML (or JSON, which YAML parses too) config file into field values."""
    p = Path(path)
    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"{p}: cannot parse config: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{p}: config must be a mapping, got {type(data).__name__}")
    return _coerce(data, str(p))


def init_config_file(path: str | Path, settings: Optional["Settings"] = None) -> Path:
    """Write ``settings`` (defaults if omitted) to ``path``, creating parent dirs."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(yaml.safe_dump((settings or Settings()).to_dict(), sort_keys=False), encoding="utf-8")
    return p


@dataclass(frozen=True, slots=True)
class Settings:
    http_port: int = const.HTTP_PORT
    https_port: int = const.HTTPS_PORT
    use_https: bool = False
    control_port: int = const.CONTROL_PORT
    host: str = const.HOST
    log_to_file: bool = True
    logs_dir: str = const.LOGS_DIR
    log_level: str = "INFO"
    enable_rest_api: bool = True
    enable_redirection_links: bool = True
    cert_file: str = const.CERT_FILE
    key_file: str = const.KEY_FILE
    allocation_cooldown_sec: float = const.ALLOCATION_COOLDOWN_SEC
    retry_seconds: int = const.RETRY_SECONDS

    @staticmethod
    def from_sources(
        config_file: Optional[str] = None,
        env_file: Optional[str] = ".env",
        *,
        create_missing: bool = False,
    ) -> "Settings":
        """
        Defaults < config file < ENV (and .env) with the MATCHMAKER_ prefix.
        CLI flags are applied afterwards through ``with_overrides``.
        """
        env_file_vars = {k: v for k, v in dotenv_values(env_file).items() if v is not None} if env_file and Path(env_file).exists() else {}

        def pick_env(key: str) -> Optional[str]:
            return os.environ.get(key) or env_file_vars.get(key)

        values: Dict[str, Any] = {}

        path = Path(config_file or pick_env(const.ENV_PREFIX + "CONFIG_FILE") or const.CONFIG_FILE)
        if path.exists():
            values.update(load_config_file(path))
        elif create_missing:
            init_config_file(path)

        env_values = {}
        for f in fields(Settings):
            raw = pick_env(const.ENV_PREFIX + f.name.upper())
            if raw is not None:
                env_values[f.name] = raw
        values.update(_coerce(env_values, "environment"))

        return Settings(**values)

    def with_overrides(self, **kw) -> "Settings":
        # None means "flag not given"
        given = {k: v for k, v in kw.items() if v is not None}
        unknown = set(given) - set(_COERCE)
        if unknown:
            raise ConfigError(f"unknown settings: {', '.join(sorted(unknown))}")
        return replace(self, **_coerce(given, "override"))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
