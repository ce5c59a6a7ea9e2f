from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from filog.core.errors import ConfigurationError
from filog.core.models import Source, TransportDescriptor
from filog.core.transport import resolve_scheme
from filog.utils.logging import get_logger


logger = get_logger(__name__)

CONFIG_ENV_VAR = "FILOG_CONFIG"


@dataclass(frozen=True)
class LoggerConfig:
    transports: tuple[TransportDescriptor, ...] = ()
    source: Source | None = None
    environment: str | None = None
    blocking: bool = False
    max_workers: int = 2
    timeout: float = 5.0
    flush_timeout: float = 5.0


def _parse_transports(items: Any) -> tuple[TransportDescriptor, ...]:
    if items is None:
        return ()
    if not isinstance(items, (list, tuple)):
        raise ConfigurationError("transports must be a list")

    out = tuple(TransportDescriptor.from_obj(item) for item in items)
    for t in out:
        if resolve_scheme(t.url) is None:
            logger.warning(
                "transport %r has unsupported url %s; logs routed to it will not be sent",
                t.client_id,
                t.url,
            )
    return out


def _positive(name: str, value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        out = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number", details={name: value}) from e
    if out <= 0:
        raise ConfigurationError(f"{name} must be positive", details={name: value})
    return out


def _flag(name: str, value: Any, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigurationError(f"{name} must be true or false", details={name: value})
    return value


def _positive_int(name: str, value: Any, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive integer", details={name: value})
    return value


def parse_config(obj: Any) -> LoggerConfig:
    """
    Accepts:
      - a flat list of transports: [{"client_id", "url", "logType"}, ...]
      - an object: {"source": {...}, "environment": "...", "transports": [...]}
      - an existing LoggerConfig
    """
    if isinstance(obj, LoggerConfig):
        return obj
    if isinstance(obj, (list, tuple)):
        return LoggerConfig(transports=_parse_transports(obj))
    if not isinstance(obj, Mapping):
        raise ConfigurationError("config must be a list of transports or an object")

    environment = obj.get("environment")
    return LoggerConfig(
        transports=_parse_transports(obj.get("transports")),
        source=Source.from_obj(obj.get("source")),
        environment=str(environment) if environment is not None else None,
        blocking=_flag("blocking", obj.get("blocking"), False),
        max_workers=_positive_int("max_workers", obj.get("max_workers"), 2),
        timeout=_positive("timeout", obj.get("timeout"), 5.0),
        flush_timeout=_positive("flush_timeout", obj.get("flush_timeout"), 5.0),
    )


def load_config_file(path: str | Path) -> LoggerConfig:
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigurationError(f"config file not found: {path}") from e
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"config file is not valid UTF-8: {path} ({e})") from e
    except OSError as e:
        raise ConfigurationError(f"failed to read config file: {path} ({e})") from e

    try:
        doc = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"invalid JSON in {path} at line {e.lineno}, column {e.colno}: {e.msg}"
        ) from e
    return parse_config(doc)


def default_config_path() -> Path | None:
    value = os.environ.get(CONFIG_ENV_VAR, "").strip()
    return Path(value) if value else None
