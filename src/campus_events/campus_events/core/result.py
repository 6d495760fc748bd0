from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .enums import ResultCode


@dataclass(frozen=True)
class OperationResult:
    """Normalized outcome of a data service call.

    Truthy when the operation succeeded, so callers can write
    ``if service.register_for_event(...)``.
    """

    ok: bool
    code: ResultCode = ResultCode.OK
    message: str = ""
    data: Any = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, message: str = "", data: Any = None) -> "OperationResult":
        return cls(ok=True, code=ResultCode.OK, message=message, data=data)

    @classmethod
    def failure(cls, code: ResultCode, message: str) -> "OperationResult":
        return cls(ok=False, code=code, message=message)
