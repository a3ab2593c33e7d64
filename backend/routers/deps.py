import threading

from fastapi import Depends
from sqlalchemy.orm import Session

from core.config import settings
from core.inventory import InventoryService
from db.database import get_session
from db.store import SqlStore

# One writer at a time per process; sync endpoints run in a threadpool.
LEDGER_LOCK = threading.RLock()


def get_inventory_service(db: Session = Depends(get_session)) -> InventoryService:
    return InventoryService(
        SqlStore(db),
        lock=LEDGER_LOCK,
        default_threshold=settings.low_stock_default_threshold,
    )
