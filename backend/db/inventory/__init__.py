"""
Inventory tables.

Models:
- InventoryCategory (one per tracked menu category: unit type + threshold)
- PortionOption (named portion sizes with price multipliers)
- InventoryItem (running stock per menu item)
- ItemPortionPrice (explicit per-item price for one portion)
- StockMovement (append-only signed deltas that update stock)
"""
