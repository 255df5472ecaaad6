"""Typed outcome of a service operation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    PERSISTENCE = "persistence"
    EXTERNAL = "external"


@dataclass
class ServiceResult(Generic[T]):
    value: T | None = None
    error: ErrorKind | None = None
    message: str = ""
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: T | None = None, message: str = "", warnings: list[str] | None = None) -> "ServiceResult[T]":
        return cls(value=value, message=message, warnings=list(warnings or []))

    @classmethod
    def failure(cls, error: ErrorKind, message: str) -> "ServiceResult[T]":
        return cls(error=error, message=message)

    @classmethod
    def invalid(cls, message: str) -> "ServiceResult[T]":
        return cls.failure(ErrorKind.VALIDATION, message)

    @classmethod
    def conflict(cls, message: str) -> "ServiceResult[T]":
        return cls.failure(ErrorKind.CONFLICT, message)

    @classmethod
    def denied(cls, message: str) -> "ServiceResult[T]":
        return cls.failure(ErrorKind.PERMISSION, message)

    @classmethod
    def not_found(cls, message: str) -> "ServiceResult[T]":
        return cls.failure(ErrorKind.NOT_FOUND, message)


__all__ = ["ErrorKind", "ServiceResult"]
