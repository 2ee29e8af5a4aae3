"""
Inventory (stock reconciliation engine).

Models:
- InventoryComponent (on-hand balance, mutated only by the stock ledger)
- StockAuditEntry (append-only record of every ledger mutation)
"""
