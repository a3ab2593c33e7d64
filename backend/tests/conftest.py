import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.inventory import InventoryService, MemoryStore
from db.database import create_db_and_tables, make_engine
from db.store import SqlStore


@pytest.fixture
def svc():
    return InventoryService(MemoryStore())


@pytest.fixture
def drinks(svc):
    """Drinks category with Whisky (Rs 150) and Vodka (Rs 120), not tracked yet."""
    svc.add_category("Drinks", category_id="drinks")
    svc.add_menu_item("Whisky", "drinks", 150, menu_item_id="whisky-id")
    svc.add_menu_item("Vodka", "drinks", 120, menu_item_id="vodka-id")
    return "drinks"


@pytest.fixture
def tracked_drinks(svc, drinks):
    svc.register_category_for_tracking(drinks, "ml", 500)
    return drinks


@pytest.fixture
def sql_engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    create_db_and_tables(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_session_maker(sql_engine):
    return sessionmaker(bind=sql_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def sql_session(sql_session_maker):
    with sql_session_maker() as session:
        yield session


@pytest.fixture
def sql_svc(sql_session):
    return InventoryService(SqlStore(sql_session))
