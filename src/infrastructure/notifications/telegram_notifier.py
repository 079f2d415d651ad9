"""
Уведомления менеджерам сервисного центра через Telegram.
"""
from typing import Optional

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError

from src.config.settings import settings
from src.domain.entities.repair_shop import OrderSummary
from src.infrastructure.logging.hybrid_logger import hybrid_logger
from src.infrastructure.utils.text_utils import escape_html


class TelegramNotifier:
    """Сервис уведомлений через Telegram"""

    def __init__(self, bot: Bot, manager_chat_id: Optional[str] = None) -> None:
        """
        Инициализация уведомлений.

        Args:
            bot: Экземпляр Telegram бота
            manager_chat_id: Чат менеджеров (по умолчанию из настроек)
        """
        self.bot = bot
        self.manager_chat_id = manager_chat_id if manager_chat_id is not None else settings.manager_telegram_chat_id

    async def notify_new_order(self, summary: OrderSummary) -> bool:
        """
        Уведомление о новом заказе.

        Returns:
            True если уведомление отправлено успешно
        """
        if not self.manager_chat_id:
            await hybrid_logger.warning("MANAGER_TELEGRAM_CHAT_ID не настроен - уведомления отключены")
            return False

        try:
            await self.bot.send_message(
                chat_id=self.manager_chat_id,
                text=self.format_order_notification(summary),
                parse_mode="HTML",
                disable_web_page_preview=True
            )

            await hybrid_logger.business(
                "Уведомление о заказе отправлено менеджерам",
                {
                    "order_id": summary.order_id,
                    "order_number": summary.order_number,
                    "manager_chat_id": self.manager_chat_id
                }
            )
            return True

        except TelegramAPIError as e:
            await hybrid_logger.error(
                f"Ошибка отправки уведомления в Telegram: {e}",
                {"order_id": summary.order_id, "manager_chat_id": self.manager_chat_id}
            )
            return False

    @staticmethod
    def format_order_notification(summary: OrderSummary) -> str:
        """Текст уведомления о новом заказе"""
        lines = [
            f"🆕 <b>Nueva orden {escape_html(summary.order_number)}</b>",
            "",
            f"👤 Cliente: {escape_html(summary.client_name)}",
            f"💻 Equipo: {escape_html(summary.equipment_name)}",
            f"🔧 Técnico: {escape_html(summary.technician_name)}",
            f"⚡ Prioridad: {summary.priority_label}",
        ]
        if summary.estimated_cost is not None:
            lines.append(f"💰 Costo estimado: {summary.estimated_cost}")
        return "\n".join(lines)
