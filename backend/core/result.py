from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from core.exceptions import StockEngineError

T = TypeVar("T")


@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """
    Value-or-error outcome of a coordinator operation.

    Expected business failures (insufficient stock, bad state, missing rows,
    storage faults) travel in ``error``; callers that prefer exceptions use
    ``unwrap()``.
    """

    value: Optional[T] = None
    error: Optional[StockEngineError] = None

    @classmethod
    def success(cls, value: T) -> "OperationResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: StockEngineError) -> "OperationResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
