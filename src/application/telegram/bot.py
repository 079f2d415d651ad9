"""
Основной файл Telegram бота приемщиков на aiogram 3.x
"""
import asyncio
from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from src.config.database import AsyncSessionLocal
from src.config.settings import settings
from src.infrastructure.logging.hybrid_logger import hybrid_logger
from src.application.telegram.handlers.order_wizard_handlers import OrderWizardHandlers
from src.application.telegram.middleware import ReceptionistAccessMiddleware
from src.application.telegram.services.order_wizard_sessions import OrderWizardSessions
from src.domain.interfaces.repair_shop import RepairShopGateway
from src.domain.services.entity_selectors import ClientSelector, EquipmentSelector
from src.domain.services.order_submission import OrderSubmissionService
from src.domain.services.order_wizard_controller import OrderWizardController
from src.infrastructure.notifications.telegram_notifier import TelegramNotifier
from src.infrastructure.repositories.repair_shop_repository import SqlAlchemyRepairShopGateway


async def create_bot() -> Bot:
    """Создание экземпляра бота"""
    if not settings.bot_token:
        raise ValueError("BOT_TOKEN не установлен в переменных окружения")

    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML)
    )

    await hybrid_logger.info("Telegram бот создан")
    return bot


def create_wizard_sessions(gateway: RepairShopGateway, notifier: TelegramNotifier) -> OrderWizardSessions:
    """Реестр мастеров; каждый мастер получает свои селекторы и оркестратор"""

    def factory(chat_id: int) -> OrderWizardController:
        return OrderWizardController(
            gateway,
            client_selector=ClientSelector(
                gateway,
                limit=settings.client_search_limit,
                debounce_seconds=settings.search_debounce_seconds
            ),
            equipment_selector=EquipmentSelector(gateway),
            submission_service=OrderSubmissionService(
                gateway,
                order_number_prefix=settings.order_number_prefix
            ),
            on_order_created=notifier.notify_new_order
        )

    return OrderWizardSessions(factory)


async def create_dispatcher(bot: Bot) -> Dispatcher:
    """Создание и настройка диспетчера"""
    dp = Dispatcher()

    # Доступ только для приемщиков
    access = ReceptionistAccessMiddleware()
    dp.message.middleware(access)
    dp.callback_query.middleware(access)

    gateway = SqlAlchemyRepairShopGateway(AsyncSessionLocal)
    notifier = TelegramNotifier(bot)
    wizard_handlers = OrderWizardHandlers(create_wizard_sessions(gateway, notifier))

    dp.include_router(wizard_handlers.router)

    await hybrid_logger.info("Dispatcher настроен: мастер создания заказов")
    return dp


async def start_bot():
    """Запуск бота"""
    try:
        await hybrid_logger.info("Запуск Telegram бота...")

        bot = await create_bot()
        dp = await create_dispatcher(bot)

        bot_info = await bot.get_me()
        await hybrid_logger.info(f"Бот запущен: @{bot_info.username}")

        await dp.start_polling(bot)

    except Exception as e:
        await hybrid_logger.critical(f"Критическая ошибка запуска бота: {e}")
        raise
    finally:
        await hybrid_logger.info("Telegram бот остановлен")


async def stop_bot(bot: Bot):
    """Остановка бота"""
    await bot.session.close()
    await hybrid_logger.info("Сессия бота закрыта")


if __name__ == "__main__":
    # Для локального запуска
    asyncio.run(start_bot())
