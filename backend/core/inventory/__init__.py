"""
Inventory & tiered-portion pricing engine.

- units: unit catalog and default portion ladders
- pricing: base price / multiplier derivation and override precedence
- ledger: stock-entry resolution (bottle quick-entry, direct quantity)
- low_stock: threshold resolution and the low-stock scan
- service: InventoryService, the operations the API and UI call
"""

from .errors import ConfigurationError, InventoryError, NotFoundError, NotTrackedError, ValidationError
from .models import (
    Category,
    InventoryCategory,
    InventoryItem,
    ItemPortionPrice,
    LowStockEntry,
    MenuItem,
    PortionOption,
    PortionPrice,
    StockMovement,
    UpdatedStock,
)
from .service import InventoryService
from .store import MemoryStore
from .units import COMMON_BOTTLE_SIZES, DEFAULT_BOTTLE_SIZE, UnitType, default_portions
