"""
Подключение к БД и инициализация таблиц
"""
import logging

from sqlalchemy import text

from src.config.database import engine
from src.config.settings import settings
from src.infrastructure.database.models import Base

logger = logging.getLogger(__name__)


async def create_tables() -> None:
    """
    Создание всех таблиц в БД.

    ⚠️ Только для development! В production таблицы создаются миграциями.
    """
    if settings.environment == "production":
        logger.warning("create_tables() отключена в production режиме")
        return

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("База данных инициализирована успешно (development режим)")
    except Exception as e:
        logger.error(f"Ошибка инициализации БД: {e}")
        raise


async def check_db_connection() -> bool:
    """Проверка подключения к БД"""
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Ошибка подключения к БД: {e}")
        return False


async def get_db_health() -> dict:
    """Информация о состоянии БД для health check"""
    try:
        is_connected = await check_db_connection()
        return {
            "database": "connected" if is_connected else "disconnected",
            "engine": engine.url.render_as_string(hide_password=True)
        }
    except Exception as e:
        return {
            "database": "error",
            "error": str(e)
        }
