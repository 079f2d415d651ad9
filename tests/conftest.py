"""
Общие fixtures для всех тестов
"""
import os

# Настройки окружения до импорта приложения: глобальный settings создается при импорте
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DISABLE_TELEGRAM_BOT", "true")
os.environ.setdefault("SEARCH_DEBOUNCE_MS", "0")

from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from src.domain.entities.order_wizard import WizardState
from src.infrastructure.database.models import Base
from src.infrastructure.logging.hybrid_logger import hybrid_logger
from tests.mocks.repair_shop_mock import InMemoryRepairShopGateway, seed_default_shop


@pytest.fixture(autouse=True)
def no_log_persistence(monkeypatch):
    """Логи в тестах пишутся только в консоль"""
    save_mock = AsyncMock()
    monkeypatch.setattr(hybrid_logger, "_save_to_db", save_mock)
    return save_mock


@pytest.fixture
def gateway() -> InMemoryRepairShopGateway:
    """Хранилище в памяти с клиентами, оборудованием и техниками"""
    return seed_default_shop(InMemoryRepairShopGateway())


@pytest.fixture
def empty_state() -> WizardState:
    return WizardState()


@pytest.fixture
async def test_engine(tmp_path):
    """Тестовый движок на SQLite-файле (сессии видят данные друг друга)"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'service_desk.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


# Автоматическое применение маркеров
def pytest_collection_modifyitems(config, items):
    """Автоматически применяет маркеры к тестам"""
    for item in items:
        # Определяем тип теста по пути к файлу
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.db)
        elif "e2e" in path:
            item.add_marker(pytest.mark.e2e)
            item.add_marker(pytest.mark.slow)

        if "telegram" in path:
            item.add_marker(pytest.mark.telegram)
        if "wizard" in path or "order" in path:
            item.add_marker(pytest.mark.wizard)
