"""
Middleware для Telegram бота
Ограничивает доступ к мастеру заказов списком приемщиков
"""
from typing import Callable, Dict, Any, Awaitable, Iterable, Optional
from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject

from src.config.settings import settings
from src.infrastructure.logging.hybrid_logger import hybrid_logger


ACCESS_DENIED_MESSAGE = "No tienes acceso a la recepción de órdenes."


class ReceptionistAccessMiddleware(BaseMiddleware):
    """
    Пропускает обновления только от приемщиков из RECEPTIONIST_TELEGRAM_IDS.
    Пустой список - доступ для всех.
    """

    def __init__(self, allowed_ids: Optional[Iterable[int]] = None) -> None:
        ids = settings.receptionist_telegram_ids_list if allowed_ids is None else allowed_ids
        self.allowed_ids = set(ids)

    def is_allowed(self, user_id: Optional[int]) -> bool:
        if not self.allowed_ids:
            return True
        return user_id in self.allowed_ids

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any]
    ) -> Any:
        user = getattr(event, "from_user", None)
        user_id = user.id if user else None

        if self.is_allowed(user_id):
            return await handler(event, data)

        await hybrid_logger.warning(f"Отказано в доступе пользователю {user_id}")
        if isinstance(event, CallbackQuery):
            await event.answer(ACCESS_DENIED_MESSAGE, show_alert=True)
        elif isinstance(event, Message):
            await event.answer(ACCESS_DENIED_MESSAGE)
        return None
