"""
Конфигурация базы данных
"""
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from src.config.settings import settings


def _engine_options(database_url: str) -> dict:
    """Параметры пула соединений (SQLite не поддерживает QueuePool)"""
    if database_url.startswith("sqlite"):
        return {"echo": settings.debug}
    return {
        "pool_size": 10,  # Базовый размер пула
        "max_overflow": 20,  # Дополнительные подключения при пиковой нагрузке
        "pool_pre_ping": True,  # Проверять подключение перед использованием
        "pool_recycle": 3600,  # Пересоздавать подключения каждый час
        "echo": settings.debug,
    }


# Создание асинхронного движка
engine = create_async_engine(
    settings.database_url,
    **_engine_options(settings.database_url)
)

# Фабрика сессий
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@asynccontextmanager
async def get_session():
    """Контекстный менеджер для получения сессии БД"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
