from __future__ import annotations

import re
from typing import Iterable

from filog.core.errors import ConfigurationError
from filog.core.http_sender import HttpSender
from filog.core.models import DispatchResult, LogPayload, TransportDescriptor
from filog.core.publisher import QueuePublisher
from filog.utils.logging import get_logger


logger = get_logger(__name__)

HTTP = "http"
AMQP = "amqp"

_HTTP_URL = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)
_AMQP_URL = re.compile(r"^amqps?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


def resolve_scheme(url: str) -> str | None:
    """Return HTTP, AMQP, or None when the url is not a supported destination."""
    if _HTTP_URL.match(url or ""):
        return HTTP
    if _AMQP_URL.match(url or ""):
        return AMQP
    return None


def select_transport(transports: Iterable[TransportDescriptor], log_level: str) -> TransportDescriptor | None:
    """
    First transport whose logType equals the level exactly, else the first
    ANY transport (case-insensitive), else None. Never fans out.
    """
    candidates = list(transports)
    for t in candidates:
        if t.log_type == log_level:
            return t
    for t in candidates:
        if t.is_wildcard:
            return t
    return None


def dispatch(
    transport: TransportDescriptor,
    payload: LogPayload,
    *,
    timeout: float = 5.0,
) -> DispatchResult:
    scheme = resolve_scheme(transport.url)
    if scheme == HTTP:
        with HttpSender(transport.url, transport.credentials, timeout=timeout) as sender:
            return sender.send(payload)
    if scheme == AMQP:
        return QueuePublisher(transport.url, queue=transport.queue).publish(payload)

    err = ConfigurationError(
        f"Unsupported transport url: {transport.url}",
        details={"client_id": transport.client_id, "logType": transport.log_type},
    )
    logger.error("[filog] %s, log not sent", err)
    return DispatchResult.failure(transport.url, err)
