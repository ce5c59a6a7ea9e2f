from filog.core.errors import (
    ConfigurationError,
    ConnectivityError,
    FilogError,
    RemoteError,
    SerializationError,
)
from filog.core.logger import Logger
from filog.core.models import (
    ANY,
    LOG_LEVELS,
    ApiKey,
    BasicAuth,
    Cookie,
    DispatchResult,
    LogPayload,
    Source,
    TransportDescriptor,
)

__all__ = [
    "Logger",
    "LogPayload",
    "Source",
    "TransportDescriptor",
    "ApiKey",
    "BasicAuth",
    "Cookie",
    "DispatchResult",
    "LOG_LEVELS",
    "ANY",
    "FilogError",
    "ConfigurationError",
    "ConnectivityError",
    "RemoteError",
    "SerializationError",
]
