"""
Гибридная система логирования
- DEBUG, INFO → консоль
- ERROR, WARNING → консоль + таблица system_logs
- CRITICAL → консоль + таблица system_logs
- BUSINESS события (создание клиентов, оборудования, заказов) → system_logs для аналитики
"""
import logging
import sys
import json
from typing import Dict, Any, Optional

from src.config.settings import settings
from src.infrastructure.database.models import SystemLog


PERSISTED_LEVELS = ('ERROR', 'WARNING', 'CRITICAL', 'BUSINESS')


class HybridLogger:
    """Гибридная система логирования"""

    def __init__(self):
        self._setup_console_logger()

    def _setup_console_logger(self) -> None:
        """Настройка консольного логгера"""
        self.file_logger = logging.getLogger("service_desk")
        self.file_logger.setLevel(logging.DEBUG)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        console_handler.setFormatter(formatter)

        # Проверяем, что handler еще не добавлен
        if not self.file_logger.handlers:
            self.file_logger.addHandler(console_handler)

    async def log(
        self,
        level: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Основной метод логирования"""
        level_upper = level.upper()

        # BUSINESS в консоли пишется как INFO
        log_level = getattr(logging, level_upper, logging.INFO)
        self.file_logger.log(log_level, message)

        if level_upper in PERSISTED_LEVELS:
            await self._save_to_db(level_upper, message, metadata)

    async def _save_to_db(
        self,
        level: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Сохранение в БД"""
        try:
            from src.config.database import get_session
            async with get_session() as session:
                log_entry = SystemLog(
                    level=level,
                    message=message,
                    extra_data=json.dumps(metadata, ensure_ascii=False, default=str) if metadata else None
                )
                session.add(log_entry)
                await session.commit()
        except Exception as e:
            # Не падаем при ошибке логирования
            self.file_logger.error(f"Ошибка сохранения лога в БД: {e}")

    async def error(self, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Логирование ошибок"""
        await self.log("ERROR", message, metadata)

    async def warning(self, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Логирование предупреждений"""
        await self.log("WARNING", message, metadata)

    async def critical(self, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Логирование критических ошибок"""
        await self.log("CRITICAL", message, metadata)

    async def business(self, message: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Логирование бизнес-событий"""
        await self.log("BUSINESS", message, metadata)

    async def info(self, message: str) -> None:
        """Информационное логирование (только в консоль)"""
        self.file_logger.info(message)

    async def debug(self, message: str) -> None:
        """Отладочное логирование (только в консоль)"""
        self.file_logger.debug(message)


# Глобальный экземпляр логгера
hybrid_logger = HybridLogger()
