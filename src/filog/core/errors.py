from __future__ import annotations

from typing import Any


class FilogError(Exception):
    """
    Base error carried in dispatch results and local diagnostics.

    name:    short label of the failure (e.g. "GraphQL Error")
    code:    remote error code or HTTP status, if any
    details: structured body extracted from the remote response
    """

    kind = "error"

    def __init__(self, name: str, code: Any = None, details: Any = None) -> None:
        super().__init__(name)
        self.name = name
        self.code = code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "name": self.name, "code": self.code, "details": self.details}

    def __str__(self) -> str:
        if self.code is None:
            return self.name
        return f"{self.name} (code={self.code})"


class ConfigurationError(FilogError):
    kind = "configuration"


class ConnectivityError(FilogError):
    kind = "connectivity"


class RemoteError(FilogError):
    kind = "remote"


class SerializationError(FilogError):
    kind = "serialization"
