"""
Главный файл приложения FastAPI
Health check endpoint и фоновый запуск бота приемщиков
"""
import os
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime
import asyncio

# Отключаем телеметрию aiogram
os.environ["AIOGRAM_DISABLE_TELEMETRY"] = "1"

from src.config.settings import settings
from src.infrastructure.database.connection import create_tables, get_db_health
from src.infrastructure.logging.hybrid_logger import hybrid_logger
from src.application.telegram.bot import start_bot


APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle события приложения"""
    await hybrid_logger.info("Запуск Service Desk...")

    bot_task = None
    try:
        await create_tables()
        await hybrid_logger.info("База данных инициализирована")

        # Запуск Telegram бота если токен настроен И бот не отключен
        if settings.bot_token and not settings.disable_telegram_bot:
            bot_task = asyncio.create_task(start_bot())
            await hybrid_logger.info("Telegram бот запущен в фоновом режиме")
        elif settings.disable_telegram_bot:
            await hybrid_logger.info("Telegram бот отключен через DISABLE_TELEGRAM_BOT")
        else:
            await hybrid_logger.warning("BOT_TOKEN не настроен, Telegram бот не запущен")

        yield

    except Exception as e:
        await hybrid_logger.critical(f"Ошибка запуска приложения: {e}")
        raise
    finally:
        if bot_task:
            bot_task.cancel()
            try:
                await bot_task
            except asyncio.CancelledError:
                pass
            await hybrid_logger.info("Telegram бот остановлен")

        await hybrid_logger.info("Завершение работы приложения")


app = FastAPI(
    title="Service Desk",
    description="Recepción de órdenes de reparación",
    version=APP_VERSION,
    debug=settings.debug,
    lifespan=lifespan
)


@app.get("/health")
async def health_check():
    """
    Health check endpoint для мониторинга
    Проверяет подключение к БД
    """
    try:
        db_status = await get_db_health()

        health_data = {
            "status": "ok",
            "timestamp": datetime.utcnow().isoformat(),
            "version": APP_VERSION,
            "environment": settings.environment,
            "components": {
                **db_status,
                "telegram": "disabled" if settings.disable_telegram_bot or not settings.bot_token else "enabled",
            }
        }

        if db_status.get("database") != "connected":
            health_data["status"] = "degraded"
            return JSONResponse(status_code=503, content=health_data)

        return JSONResponse(content=health_data)

    except Exception as e:
        await hybrid_logger.error(f"Ошибка health check: {e}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "error",
                "timestamp": datetime.utcnow().isoformat(),
                "error": str(e)
            }
        )


@app.get("/")
async def root():
    """Корневой endpoint"""
    return {
        "message": "Service Desk API",
        "version": APP_VERSION,
        "docs": "/docs",
        "health": "/health",
    }


async def run_bot_only():
    """Запуск только Telegram бота без FastAPI"""
    await hybrid_logger.info("Запуск Telegram бота...")

    try:
        await create_tables()
        await hybrid_logger.info("База данных инициализирована")

        if not settings.bot_token:
            await hybrid_logger.critical("BOT_TOKEN не настроен!")
            return

        await start_bot()

    except Exception as e:
        await hybrid_logger.critical(f"Ошибка запуска бота: {e}")
        raise


if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1 and sys.argv[1] == "bot":
        asyncio.run(run_bot_only())
    else:
        import uvicorn
        uvicorn.run(
            "src.main:app",
            host="0.0.0.0",
            port=8000,
            reload=settings.debug,
            log_level=settings.log_level.lower()
        )
