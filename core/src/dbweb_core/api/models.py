from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from dbweb_core.errors import DBWebError

T = TypeVar("T")


class ApiError(BaseModel):
    code: str
    message: str
    details: Any | None = None

    @classmethod
    def from_exception(cls, err: DBWebError) -> ApiError:
        return cls(code=err.code, message=err.message, details=err.details or None)


class ApiResponse(BaseModel, Generic[T]):
    """Envelope of every JSON response under ``/api``.

    Exactly one of ``data`` (when ``ok``) and ``error`` is set.
    """

    ok: bool
    data: T | None = None
    error: ApiError | None = None


def ok(data: T) -> ApiResponse[T]:
    return ApiResponse(ok=True, data=data)


def fail(*, code: str, message: str, details: Any | None = None) -> ApiResponse[None]:
    return ApiResponse(ok=False, error=ApiError(code=code, message=message, details=details))


def fail_from_error(err: DBWebError) -> ApiResponse[None]:
    return ApiResponse(ok=False, error=ApiError.from_exception(err))
