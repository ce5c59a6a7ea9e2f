"""
filog client

    from filog import Logger

    logger = Logger({
        "source": {"app_name": "billing", "app_version": "1.4.0"},
        "environment": "production",
        "transports": [
            {"client_id": "billing-svc", "url": "https://logs.example.com/api/v1/logs", "logType": "ANY"},
            {"client_id": "billing-svc", "url": "amqp://guest:guest@mq:5672/%2F", "logType": "ERROR"},
        ],
    })

    try:
        charge()
    except PaymentError as e:
        logger.error(e, event_code="PAY-001")

Every log call is fire-and-forget: it returns a Future that resolves to a
DispatchResult, and never raises into the caller.
"""
from __future__ import annotations

import json
import sys
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Mapping

from filog.core.config import LoggerConfig, parse_config
from filog.core.errors import ConfigurationError, FilogError, SerializationError
from filog.core.models import LOG_LEVELS, DispatchResult, LogPayload, Source, TransportDescriptor
from filog.core.stacktrace import describe_error, error_name_and_message, is_error_like
from filog.core.transport import dispatch, select_transport
from filog.utils.logging import get_logger


logger = get_logger(__name__)


def _completed(result: DispatchResult) -> "Future[DispatchResult]":
    future: Future[DispatchResult] = Future()
    future.set_result(result)
    return future


def _stringify(value: Any) -> str:
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def _is_verbose(verbose: Any) -> bool:
    return verbose is True or str(verbose).strip().lower() == "true"


class Logger:
    def __init__(self, config: Any) -> None:
        self.config: LoggerConfig = parse_config(config)
        self._closed = False
        self._executor: ThreadPoolExecutor | None = None
        if not self.config.blocking:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.max_workers,
                thread_name_prefix="filog",
            )

    @property
    def transports(self) -> tuple[TransportDescriptor, ...]:
        return self.config.transports

    @property
    def source(self) -> Source | None:
        return self.config.source

    @property
    def environment(self) -> str | None:
        return self.config.environment

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        del exc_type, exc, tb
        self.close()

    def close(self, wait: bool = True) -> None:
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=wait)

    def debug(self, error: Any, *, event_code: str | None = None, print_out: bool = False,
              payload: Mapping[str, Any] | LogPayload | None = None) -> "Future[DispatchResult]":
        return self._write("DEBUG", error, event_code, print_out, payload)

    def info(self, error: Any, *, event_code: str | None = None, print_out: bool = False,
             payload: Mapping[str, Any] | LogPayload | None = None) -> "Future[DispatchResult]":
        return self._write("INFO", error, event_code, print_out, payload)

    def warning(self, error: Any, *, event_code: str | None = None, print_out: bool = False,
                payload: Mapping[str, Any] | LogPayload | None = None) -> "Future[DispatchResult]":
        return self._write("WARNING", error, event_code, print_out, payload)

    def error(self, error: Any, *, event_code: str | None = None, print_out: bool = False,
              payload: Mapping[str, Any] | LogPayload | None = None) -> "Future[DispatchResult]":
        return self._write("ERROR", error, event_code, print_out, payload)

    def error_listener(self, hooks: Any = None) -> None:
        """
        Route uncaught exceptions and unhandled async errors through error().

        Call once per process: hooks are global and a second call registers
        a second pair of handlers. Previously installed hooks still run, so
        the interpreter's own termination behavior is unchanged.
        """
        from filog.core.hooks import install_error_listener

        install_error_listener(self, hooks)

    def _write(
        self,
        log_level: str,
        error: Any,
        event_code: str | None,
        print_out: bool,
        payload: Mapping[str, Any] | LogPayload | None,
    ) -> "Future[DispatchResult]":
        if isinstance(payload, LogPayload):
            payload.log_level = log_level
            body: Mapping[str, Any] | LogPayload = payload
        elif payload:
            body = {**payload, "logLevel": log_level}
        else:
            if event_code is None and is_error_like(error):
                event_code = error_name_and_message(error)[0]
            body = {
                "logLevel": log_level,
                "logTicket": str(uuid.uuid4()),
                "errorDescription": error,
                "eventCode": event_code,
                "environment": self.environment,
                "source": self.source,
            }
        return self.write(body, verbose=print_out, original_error=error)

    def write(
        self,
        payload: Mapping[str, Any] | LogPayload,
        *,
        verbose: bool | str = False,
        original_error: Any = None,
    ) -> "Future[DispatchResult]":
        """
        Normalize one payload and dispatch it to the first matching transport.

        - transport: first exact logType match, else first "ANY", else nothing
        - source/environment are backfilled from the logger defaults
        - Error-like descriptions become "<Name>: <message>" plus app frames
        """
        try:
            entry = LogPayload.from_obj(payload)
        except ConfigurationError as e:
            logger.error("[filog] invalid payload: %s", e)
            return _completed(DispatchResult.failure(None, e))

        if entry.log_level not in LOG_LEVELS:
            err = ConfigurationError(
                f"unknown logLevel: {entry.log_level!r}",
                details={"allowed": list(LOG_LEVELS)},
            )
            logger.error("[filog] %s", err)
            return _completed(DispatchResult.failure(None, err))

        transport = select_transport(self.transports, entry.log_level)
        if transport is None:
            err = ConfigurationError(
                "Cannot send any logs to server: Transport not specified",
                details={"logLevel": entry.log_level},
            )
            logger.error("[filog] --> %s for level %s <--", err, entry.log_level)
            return _completed(DispatchResult.failure(None, err))

        if entry.source is None and self.source is not None:
            entry.source = Source.from_obj(self.source)
        if not entry.environment and self.environment:
            entry.environment = self.environment
        if not entry.log_ticket:
            entry.log_ticket = str(uuid.uuid4())

        self._normalize(entry, original_error)

        if _is_verbose(verbose):
            print(f"\n{entry.error_description}\n", file=sys.stderr)

        if self._closed:
            err = ConfigurationError("logger is closed", details={"logLevel": entry.log_level})
            logger.error("[filog] %s, log not sent", err)
            return _completed(DispatchResult.failure(transport.url, err))

        if self._executor is None:
            return _completed(self._dispatch(transport, entry))
        try:
            return self._executor.submit(self._dispatch, transport, entry)
        except RuntimeError as e:
            # raced with close(), or the interpreter is shutting down
            err = ConfigurationError("logger is closed", details={"error": str(e), "logLevel": entry.log_level})
            logger.error("[filog] %s, log not sent", err)
            return _completed(DispatchResult.failure(transport.url, err))

    def _normalize(self, entry: LogPayload, original_error: Any) -> None:
        desc = entry.error_description
        if isinstance(desc, str):
            return

        err = desc if desc is not None else original_error
        if err is None:
            return
        if not is_error_like(err):
            entry.error_description = _stringify(err)
            return

        try:
            entry.error_description = describe_error(err)
        except Exception as e:
            failure = SerializationError(
                "could not extract stack trace",
                details={"error": f"{type(e).__name__}: {e}"},
            )
            logger.warning("[filog] %s; sending description without frames", failure)
            name, message = _safe_name_and_message(err)
            entry.error_description = f"{name}: {message}".rstrip()

    def _dispatch(self, transport: TransportDescriptor, entry: LogPayload) -> DispatchResult:
        try:
            return dispatch(transport, entry, timeout=self.config.timeout)
        except FilogError as e:
            logger.error("[filog] dispatch to %s failed: %s", transport.url, e)
            return DispatchResult.failure(transport.url, e)
        except Exception as e:
            logger.exception("[filog] dispatch to %s failed", transport.url)
            return DispatchResult.failure(transport.url, FilogError(f"{type(e).__name__}: {e}"))


def _safe_name_and_message(err: Any) -> tuple[str, str]:
    try:
        return error_name_and_message(err)
    except Exception:
        return type(err).__name__, ""
