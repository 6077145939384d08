"""Unified error hierarchy for bizos.

All domain errors inherit from BizosError. Store mutators and storage
adapters raise these; the action executor converts them into failed
ExecutionResults instead of letting them cross its boundary.

Each class knows its HTTP status and the extra fields it contributes to
the gateway's ``{error, message, ...}`` body, so the gateway needs a
single handler for the whole family.
"""

from __future__ import annotations

from typing import Any, ClassVar


class BizosError(Exception):
    """Base error for all bizos exceptions."""

    status_code: ClassVar[int] = 500
    default_code: ClassVar[str] = "BIZOS_ERROR"

    def __init__(self, message: str, code: str = "") -> None:
        self.code = code or self.default_code
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {}

    def to_body(self) -> dict[str, Any]:
        return {"error": self.code, "message": str(self), **self.details()}


# -- Infrastructure errors --


class PortUnavailableError(BizosError):
    """A Port dependency (LLM provider, storage backend) cannot be reached."""

    status_code = 503
    default_code = "PORT_UNAVAILABLE"

    def __init__(self, port_name: str, message: str = "") -> None:
        self.port_name = port_name
        super().__init__(message or f"Port {port_name} is unavailable")

    def details(self) -> dict[str, Any]:
        return {"port": self.port_name}


class StorageError(BizosError):
    """Reading or writing the business state snapshot failed."""

    status_code = 503
    default_code = "STORAGE_FAILED"

    def __init__(self, key: str, message: str = "") -> None:
        self.key = key
        super().__init__(message or f"Storage operation failed for key: {key}")


# -- Domain errors --


class NotFoundError(BizosError):
    """No task/customer/goal with the given id exists in the store."""

    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: str) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} not found: {resource_id}")

    def details(self) -> dict[str, Any]:
        return {"resource_type": self.resource_type, "resource_id": self.resource_id}


class ValidationError(BizosError):
    """A store invariant would be violated (empty title, health out of range...)."""

    status_code = 422
    default_code = "VALIDATION"

    def __init__(self, message: str, field: str = "") -> None:
        self.field = field
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {"field": self.field} if self.field else {}


__all__ = [
    "BizosError",
    "NotFoundError",
    "PortUnavailableError",
    "StorageError",
    "ValidationError",
]
