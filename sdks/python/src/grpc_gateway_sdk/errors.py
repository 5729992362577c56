from __future__ import annotations

from typing import Any


class GatewayRequestError(Exception):
    """Base class for usage errors raised while building a gateway request."""


class MissingPathParameter(GatewayRequestError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"missing path parameter: {self.path}"


class InvalidPathParameterType(GatewayRequestError):
    def __init__(self, path: str, actual_type: str, *, value: Any | None = None) -> None:
        self.path = path
        self.actual_type = actual_type
        self.value = value
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.value is not None:
            return (
                f'path parameter "{self.path}" must be a string, '
                f'received {self.value!r} which is "{self.actual_type}"'
            )
        return f'path parameter "{self.path}" must be a string, received "{self.actual_type}"'


class InvalidPathTemplate(GatewayRequestError, ValueError):
    def __init__(self, template: str, message: str) -> None:
        self.template = template
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"invalid path template {self.template!r}: {self.message}"


class InvalidBase64(GatewayRequestError, ValueError):
    def __init__(self, message: str = "invalid base64 string") -> None:
        self.message = message
        super().__init__(message)


class InvalidInteger(GatewayRequestError, ValueError):
    def __init__(self, value: Any, *, reason: str | None = None) -> None:
        self.value = value
        self.reason = reason
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.reason:
            return f"cannot convert {self.value!r} to an integer: {self.reason}"
        return f"cannot convert {self.value!r} to an integer"


class NoBaseContext(GatewayRequestError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"cannot resolve {self.path!r} without a base_path"
