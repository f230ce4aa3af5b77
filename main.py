from typing import Optional

from core import database
from core.app_logging import get_logger
from core.settings import Settings, get_settings
from modules.goods.repository import SqlGoodsRepository
from modules.goods.service import GoodsService


def create_goods_service(settings: Optional[Settings] = None) -> GoodsService:
    """Wire the goods service to a SQL repository, creating tables if needed."""
    settings = settings or get_settings()
    if settings.database_url == database.settings.database_url:
        engine, session_factory = database.engine, database.SessionLocal
    else:
        engine = database.build_engine(settings.database_url)
        session_factory = database.build_session_factory(engine)

    database.init_db(engine)
    return GoodsService(
        SqlGoodsRepository(session_factory),
        logger=get_logger("goods", level=settings.log_level),
    )
