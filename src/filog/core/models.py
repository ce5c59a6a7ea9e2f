from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from filog.core.errors import ConfigurationError, FilogError, SerializationError


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
ANY = "ANY"

# minimal variant: a transport without explicit auth identifies itself with this header
CLIENT_ID_HEADER = "x-client-id"


@dataclass(frozen=True)
class ApiKey:
    name: str
    value: str
    type: str = field(default="ApiKey", init=False)

    def headers(self) -> dict[str, str]:
        return {self.name: self.value}


@dataclass(frozen=True)
class BasicAuth:
    value: str
    type: str = field(default="BasicAuth", init=False)

    def headers(self) -> dict[str, str]:
        return {"Authorization": self.value}


@dataclass(frozen=True)
class Cookie:
    name: str
    value: str
    type: str = field(default="Cookie", init=False)

    def headers(self) -> dict[str, str]:
        return {"Cookie": f"{self.name}={self.value}"}


AuthScheme = Union[ApiKey, BasicAuth, Cookie]


def auth_from_obj(obj: Any) -> AuthScheme:
    """
    Build an auth scheme from a config mapping:
      {"type": "ApiKey", "name": "x-api-key", "value": "..."}
      {"type": "BasicAuth", "value": "Basic ..."}
      {"type": "Cookie", "name": "session", "value": "..."}
    """
    if isinstance(obj, (ApiKey, BasicAuth, Cookie)):
        return obj
    if not isinstance(obj, Mapping):
        raise ConfigurationError("auth must be an object", details={"auth": repr(obj)})

    kind = str(obj.get("type") or "").strip().lower()
    value = obj.get("value")
    if not isinstance(value, str) or not value:
        raise ConfigurationError("auth.value is required", details={"type": obj.get("type")})

    if kind == "apikey":
        return ApiKey(name=_require_name(obj), value=value)
    if kind == "basicauth":
        return BasicAuth(value=value)
    if kind == "cookie":
        return Cookie(name=_require_name(obj), value=value)
    raise ConfigurationError(f"unknown auth type: {obj.get('type')!r}")


def _require_name(obj: Mapping[str, Any]) -> str:
    name = obj.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError("auth.name is required", details={"type": obj.get("type")})
    return name.strip()


@dataclass(frozen=True)
class TransportDescriptor:
    client_id: str
    url: str
    log_type: str = ANY
    auth: AuthScheme | None = None
    queue: str | None = None

    @property
    def credentials(self) -> AuthScheme:
        if self.auth is not None:
            return self.auth
        return ApiKey(name=CLIENT_ID_HEADER, value=self.client_id)

    @property
    def is_wildcard(self) -> bool:
        return self.log_type.upper() == ANY

    @classmethod
    def from_obj(cls, obj: Any) -> "TransportDescriptor":
        if isinstance(obj, TransportDescriptor):
            return obj
        if not isinstance(obj, Mapping):
            raise ConfigurationError("transport must be an object", details={"transport": repr(obj)})

        url = obj.get("url")
        if not isinstance(url, str) or not url.strip():
            raise ConfigurationError("transport.url is required", details={"transport": dict(obj)})

        log_type = obj.get("logType", obj.get("log_type", ANY))
        if not isinstance(log_type, str) or not (log_type in LOG_LEVELS or log_type.upper() == ANY):
            raise ConfigurationError(
                f"invalid transport.logType: {log_type!r}",
                details={"allowed": [*LOG_LEVELS, ANY]},
            )

        client_id = obj.get("client_id", obj.get("clientId", ""))
        auth = obj.get("auth")
        queue = obj.get("queue")
        return cls(
            client_id=str(client_id or ""),
            url=url.strip(),
            log_type=log_type,
            auth=auth_from_obj(auth) if auth is not None else None,
            queue=str(queue) if queue else None,
        )


@dataclass
class Source:
    app_name: str | None = None
    app_version: str | None = None
    package_name: str | None = None

    @classmethod
    def from_obj(cls, obj: Any) -> "Source | None":
        if obj is None:
            return None
        if isinstance(obj, Source):
            return Source(obj.app_name, obj.app_version, obj.package_name)
        if not isinstance(obj, Mapping):
            raise ConfigurationError("source must be an object", details={"source": repr(obj)})
        return cls(
            app_name=obj.get("app_name"),
            app_version=obj.get("app_version"),
            package_name=obj.get("package_name"),
        )

    def to_dict(self) -> dict[str, Any]:
        out = {
            "app_name": self.app_name,
            "app_version": self.app_version,
            "package_name": self.package_name,
        }
        return {k: v for k, v in out.items() if v is not None}


_WIRE_KEYS = {
    "log_level": "logLevel",
    "log_ticket": "logTicket",
    "event_code": "eventCode",
    "environment": "environment",
    "source": "source",
    "error_description": "errorDescription",
}


@dataclass
class LogPayload:
    """
    One log event. `error_description` holds a string, an exception or an
    Error-like object until the logger normalizes it into a string.
    Unknown keys given to `from_obj` are kept in `extra` and sent as-is.
    """

    log_level: str
    error_description: Any = None
    log_ticket: str | None = None
    event_code: str | None = None
    environment: str | None = None
    source: Source | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_obj(cls, obj: Any) -> "LogPayload":
        if isinstance(obj, LogPayload):
            return obj
        if not isinstance(obj, Mapping):
            raise ConfigurationError("payload must be a mapping or LogPayload")

        values: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        camel_to_attr = {v: k for k, v in _WIRE_KEYS.items()}
        for key, value in obj.items():
            attr = camel_to_attr.get(key, key if key in _WIRE_KEYS else None)
            if attr is None:
                extra[str(key)] = value
            else:
                values[attr] = value

        if "log_level" not in values:
            raise ConfigurationError("payload.logLevel is required")
        values["source"] = Source.from_obj(values.get("source"))
        return cls(extra=extra, **values)

    def to_dict(self) -> dict[str, Any]:
        """Wire form. Fails if the description was not normalized into a string."""
        if self.error_description is not None and not isinstance(self.error_description, str):
            raise SerializationError(
                "errorDescription must be a string before dispatch",
                details={"type": type(self.error_description).__name__},
            )

        out: dict[str, Any] = dict(self.extra)
        for attr, key in _WIRE_KEYS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            out[key] = value.to_dict() if isinstance(value, Source) else value
        return out


def encode_payload(payload: LogPayload | Mapping[str, Any]) -> tuple[dict[str, Any], str]:
    """
    Wire dict and its strict JSON text. Non-JSON values (datetime, NaN,
    infinity) raise SerializationError before any transport is touched.
    """
    body = payload.to_dict() if isinstance(payload, LogPayload) else dict(payload)
    try:
        return body, json.dumps(body, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(
            "payload is not JSON serializable",
            details={"error": f"{type(e).__name__}: {e}"},
        ) from e


@dataclass
class DispatchResult:
    ok: bool
    target: str | None
    kind: str | None = None
    error: FilogError | None = None
    status_code: int | None = None

    @classmethod
    def success(cls, target: str, status_code: int | None = None) -> "DispatchResult":
        return cls(ok=True, target=target, status_code=status_code)

    @classmethod
    def failure(cls, target: str | None, error: FilogError, status_code: int | None = None) -> "DispatchResult":
        return cls(ok=False, target=target, kind=error.kind, error=error, status_code=status_code)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "target": self.target,
            "kind": self.kind,
            "status_code": self.status_code,
            "error": self.error.to_dict() if self.error else None,
        }
