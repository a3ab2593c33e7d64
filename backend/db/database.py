from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from core.config import settings


class Base(DeclarativeBase):
    pass


def make_engine(url: str, echo: bool = False, **kwargs):
    if url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a threadpool
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, echo=echo, **kwargs)


engine = make_engine(settings.database_url, echo=settings.database_echo)
session_maker = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def import_models():
    # Registers every table on Base.metadata
    from . import category, menu_item  # noqa: F401
    from .inventory import category as _ic, item, movement, portion, price  # noqa: F401


def create_db_and_tables(bind=None):
    import_models()
    Base.metadata.create_all(bind=bind or engine)


def get_session() -> Generator[Session, None, None]:
    with session_maker() as session:
        yield session
