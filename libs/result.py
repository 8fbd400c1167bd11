"""
Result type shared by the application layer.

Use cases never raise for expected business failures; they return a
Result carrying either a value or an Error(code, message).
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Error:
    code: str
    message: str


class Result(Generic[T]):
    __slots__ = ("_value", "_error")

    def __init__(self, value: Optional[T] = None, error: Optional[Error] = None):
        self._value = value
        self._error = error

    def is_ok(self) -> bool:
        return self._error is None

    def is_err(self) -> bool:
        return self._error is not None

    @property
    def value(self) -> T:
        if self._error is not None:
            raise ValueError(f"Result is an error: {self._error.code}")
        return self._value

    @property
    def error(self) -> Error:
        if self._error is None:
            raise ValueError("Result is not an error")
        return self._error

    def __repr__(self) -> str:
        if self.is_err():
            return f"Result(error={self._error!r})"
        return f"Result(value={self._value!r})"


class Return:
    @staticmethod
    def ok(value: T = None) -> Result[T]:
        return Result(value=value)

    @staticmethod
    def err(error: Error) -> Result:
        return Result(error=error)
