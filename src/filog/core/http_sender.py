from __future__ import annotations

import copy
import json
import time
from dataclasses import dataclass
from typing import Any, Mapping

import requests

from filog.core.errors import ConnectivityError, RemoteError, SerializationError
from filog.core.models import AuthScheme, DispatchResult, LogPayload, encode_payload
from filog.utils.logging import get_logger
from filog.utils.version import get_version


logger = get_logger(__name__)


def user_agent() -> str:
    return f"filog-client/{get_version()}"


@dataclass
class HttpResponse:
    ok: bool
    url: str
    status_code: int | None
    body: bytes
    response_time_ms: int | None
    error: str | None

    def text(self) -> str:
        return self.body.decode("utf-8", errors="ignore") if self.body else ""

    def json(self) -> Any:
        text = self.text()
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return None


def _graphql_errors(data: Any) -> list[Any]:
    if isinstance(data, dict) and isinstance(data.get("errors"), list):
        return data["errors"]
    return []


def _looks_like_graphql(body: Mapping[str, Any]) -> bool:
    return "query" in body and "variables" in body


def strip_sensitive(error: Any) -> Any:
    """Drop `locations` and `extensions.stacktrace` from a GraphQL error entry."""
    if not isinstance(error, dict):
        return error
    out = copy.deepcopy(error)
    out.pop("locations", None)
    extensions = out.get("extensions")
    if isinstance(extensions, dict):
        extensions.pop("stacktrace", None)
    return out


def _error_code(error: Any) -> Any:
    if isinstance(error, dict) and isinstance(error.get("extensions"), dict):
        return error["extensions"].get("code")
    return None


class HttpSender:
    """
    One POST to one fixed target with one fixed credential.

    send() never raises: every failure is logged under "filog" and returned
    as a DispatchResult.
    """

    def __init__(
        self,
        target: str,
        auth: AuthScheme,
        *,
        timeout: float = 5.0,
        verify_tls: bool = True,
        proxy: str | None = None,
        max_bytes: int = 64_000,
    ) -> None:
        self.target = target
        self.auth = auth
        self.timeout = timeout
        self.verify_tls = verify_tls
        self.max_bytes = max_bytes

        self._session = requests.Session()
        self._headers = {
            "content-type": "application/json",
            "accept": "application/json",
            "user-agent": user_agent(),
        }

        self._proxies: dict[str, str] | None = None
        if proxy:
            self._proxies = {"http": proxy, "https": proxy}

    def __enter__(self) -> "HttpSender":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        del exc_type, exc, tb
        self.close()

    def close(self) -> None:
        try:
            self._session.close()
        except Exception:
            pass

    def request_headers(self) -> dict[str, str]:
        merged = dict(self._headers)
        merged.update(self.auth.headers())
        return merged

    def _post(self, encoded: str) -> HttpResponse:
        start = time.perf_counter()
        try:
            with self._session.request(
                method="POST",
                url=self.target,
                timeout=self.timeout,
                verify=self.verify_tls,
                headers=self.request_headers(),
                proxies=self._proxies,
                stream=True,
                data=encoded.encode("utf-8"),
            ) as r:
                chunks: list[bytes] = []
                total = 0
                for chunk in r.iter_content(chunk_size=16_384):
                    if not chunk:
                        continue
                    remain = self.max_bytes - total
                    if remain <= 0:
                        break
                    chunk = chunk[:remain]
                    chunks.append(chunk)
                    total += len(chunk)

                return HttpResponse(
                    ok=True,
                    url=self.target,
                    status_code=int(getattr(r, "status_code", 0) or 0),
                    body=b"".join(chunks),
                    response_time_ms=int(round((time.perf_counter() - start) * 1000)),
                    error=None,
                )

        except requests.RequestException as e:
            return HttpResponse(
                ok=False,
                url=self.target,
                status_code=None,
                body=b"",
                response_time_ms=int(round((time.perf_counter() - start) * 1000)),
                error=f"{type(e).__name__}: {e}",
            )

    def send(self, payload: LogPayload | Mapping[str, Any]) -> DispatchResult:
        try:
            body, encoded = encode_payload(payload)
        except SerializationError as e:
            logger.error("[filog] payload for %s not sent: %s %s", self.target, e, e.details or "")
            return DispatchResult.failure(self.target, e)

        res = self._post(encoded)
        if not res.ok:
            err = ConnectivityError(f"Can not connect to {self.target}", details={"error": res.error})
            logger.error("[filog] Error: Can not connect to %s (%s)", self.target, res.error)
            return DispatchResult.failure(self.target, err)

        status = res.status_code or 0
        data = res.json()
        errors = _graphql_errors(data)

        # GraphQL reports failures with a 2xx status
        if 200 <= status < 300:
            if not errors:
                logger.debug("log delivered to %s status=%s in %sms", self.target, status, res.response_time_ms)
                return DispatchResult.success(self.target, status)
            first = strip_sensitive(errors[0])
            message = first.get("message") if isinstance(first, dict) else str(first)
            extensions = first.get("extensions") if isinstance(first, dict) else None
            err = RemoteError(
                "GraphQL Error",
                code=_error_code(first),
                details={"message": message, "extensions": extensions or {}},
            )
            logger.error("[filog] %s from %s: %s", err, self.target, err.details)
            return DispatchResult.failure(self.target, err, status)

        if errors or _looks_like_graphql(body):
            api_error = strip_sensitive(errors[0]) if errors else (data if data is not None else res.text())
            code = _error_code(api_error)
        else:
            api_error = data if data is not None else res.text()
            code = None
        if code is None and isinstance(data, dict):
            code = data.get("code")
        if code is None:
            code = status

        err = RemoteError(f"Request failed with status code {status}", code=code, details=api_error)
        logger.error("[filog] %s from %s: %s", err, self.target, api_error)
        return DispatchResult.failure(self.target, err, status)
