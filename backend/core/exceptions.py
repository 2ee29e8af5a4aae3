"""
Typed exceptions for the stock reconciliation engine.

    StockEngineError (base)
    |
    +-- InsufficientStockError   one or more components would go negative
    +-- InvalidStateError        order/line item state forbids the operation
    +-- NotFoundError            referenced order/line item/addon/component missing
    +-- InvalidQuantityError     bad input, rejected before any stock call
    +-- StorageError             commit/lock/I-O failure, safe to retry
    +-- AuditImmutableError      attempt to modify or delete an audit entry

Every class has a machine-readable ``code`` and keeps its structured data
as attributes so the HTTP layer never parses messages.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID


class StockEngineError(Exception):
    code: str = "STOCK_ENGINE_ERROR"
    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_details(self) -> Dict[str, Any]:
        return {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.to_details(),
        }


@dataclass(frozen=True)
class StockShortfall:
    inventory_component_id: UUID
    name: str
    unit: str
    requested: Decimal
    available: Decimal

    @property
    def shortfall(self) -> Decimal:
        return self.requested - self.available

    def to_dict(self) -> Dict[str, Any]:
        return {
            "inventory_component_id": str(self.inventory_component_id),
            "name": self.name,
            "unit": self.unit,
            "requested": str(self.requested),
            "available": str(self.available),
            "shortfall": str(self.shortfall),
        }


class InsufficientStockError(StockEngineError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, shortfalls: Sequence[StockShortfall]):
        self.shortfalls: List[StockShortfall] = list(shortfalls)
        parts = [
            f"{s.name}: requested {s.requested}, available {s.available}"
            for s in self.shortfalls
        ]
        super().__init__("Insufficient stock for " + "; ".join(parts))

    def shortfall_for(self, inventory_component_id: UUID) -> Optional[StockShortfall]:
        for s in self.shortfalls:
            if s.inventory_component_id == inventory_component_id:
                return s
        return None

    def to_details(self) -> Dict[str, Any]:
        return {"shortfalls": [s.to_dict() for s in self.shortfalls]}


class InvalidStateError(StockEngineError):
    code = "INVALID_STATE"

    def __init__(self, message: str, entity: str, entity_id: Optional[UUID] = None, state: Optional[str] = None):
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id
        self.state = state

    def to_details(self) -> Dict[str, Any]:
        return {
            "entity": self.entity,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "state": self.state,
        }


class NotFoundError(StockEngineError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id

    def to_details(self) -> Dict[str, Any]:
        return {"entity": self.entity, "entity_id": str(self.entity_id)}


class InvalidQuantityError(StockEngineError):
    code = "INVALID_QUANTITY"

    def __init__(self, field: str, value: Any):
        super().__init__(f"{field} must be an integer >= 1 (got {value!r})")
        self.field = field
        self.value = value

    def to_details(self) -> Dict[str, Any]:
        return {"field": self.field, "value": str(self.value)}


class StorageError(StockEngineError):
    code = "STORAGE_ERROR"
    retryable = True

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Storage failure during {operation}{detail}")
        self.operation = operation
        self.cause = cause

    def to_details(self) -> Dict[str, Any]:
        return {"operation": self.operation}


class AuditImmutableError(StockEngineError):
    code = "AUDIT_IMMUTABLE"

    def __init__(self, entry_id: Any, action: str):
        super().__init__(f"Audit entry {entry_id} is append-only; {action} is not allowed")
        self.entry_id = entry_id
        self.action = action
