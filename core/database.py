"""Database engine and session management."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from core.settings import get_settings
from core.models import Base


def build_engine(database_url: str) -> Engine:
    return create_engine(
        database_url,
        connect_args={"check_same_thread": False} if database_url.startswith("sqlite") else {},
    )


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


settings = get_settings()

engine = build_engine(settings.database_url)

SessionLocal = build_session_factory(engine)


def init_db(bind: Engine = engine) -> None:
    # Table classes register themselves on Base when imported
    import modules.goods.models  # noqa: F401

    Base.metadata.create_all(bind=bind)
