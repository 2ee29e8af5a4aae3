"""ORM listeners that keep the stock audit trail append-only."""

from sqlalchemy import event

from core.exceptions import AuditImmutableError
from .inventory.audit import StockAuditEntry


def _reject_update(mapper, connection, target):
    raise AuditImmutableError(target.id, "update")


def _reject_delete(mapper, connection, target):
    raise AuditImmutableError(target.id, "delete")


def register_immutability_listeners() -> None:
    if not event.contains(StockAuditEntry, "before_update", _reject_update):
        event.listen(StockAuditEntry, "before_update", _reject_update)
    if not event.contains(StockAuditEntry, "before_delete", _reject_delete):
        event.listen(StockAuditEntry, "before_delete", _reject_delete)


def unregister_immutability_listeners() -> None:
    if event.contains(StockAuditEntry, "before_update", _reject_update):
        event.remove(StockAuditEntry, "before_update", _reject_update)
    if event.contains(StockAuditEntry, "before_delete", _reject_delete):
        event.remove(StockAuditEntry, "before_delete", _reject_delete)
