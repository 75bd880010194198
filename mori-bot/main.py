#!/usr/bin/env python3
"""
MORI Bot - Telegram бот для уведомлений о движении цены токена $MORI
"""

import asyncio
import logging
import signal
import sys
import os
from typing import Optional

# Исправление кодировки для Windows
if os.name == 'nt':  # Windows
    import codecs
    sys.stdout = codecs.getwriter('utf-8')(sys.stdout.buffer, 'strict')
    sys.stderr = codecs.getwriter('utf-8')(sys.stderr.buffer, 'strict')

from config.settings import config
from cache.memory import subscribers
from services.price_alerts import price_alert_service
from services.telegram.bot import telegram_bot
from services.web.server import web_server
from utils.queue import message_queue

logger = logging.getLogger(__name__)


def setup_logging():
    """Настройка логирования"""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format=config.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(config.LOG_FILE, encoding=config.LOG_FILE_ENCODING)
        ]
    )

    # Подавляем лишние логи
    logging.getLogger('aiogram').setLevel(logging.WARNING)
    logging.getLogger('aiohttp').setLevel(logging.WARNING)


class MoriBot:
    """Главный класс приложения"""

    def __init__(self):
        self.running = False
        self._stopped = asyncio.Event()
        self.services = {
            'telegram': telegram_bot,
            'price_alerts': price_alert_service
        }

    async def start(self):
        """Запуск всех сервисов"""
        logger.info("Starting MORI Bot...")

        try:
            config.validate()
        except ValueError as e:
            logger.error(f"Configuration error: {e}")
            sys.exit(1)

        self.running = True

        try:
            # Бот регистрирует webhook маршрут до старта сервера
            telegram_bot.setup(web_server.app)
            price_alert_service.set_notifier(telegram_bot)
            web_server.set_health_provider(self.health_check)

            await web_server.start()
            await price_alert_service.start()

            logger.info("All services started successfully")

            # В режиме polling start() блокирует до остановки
            await telegram_bot.start()

            if telegram_bot.use_webhook:
                await self._stopped.wait()

        except Exception as e:
            logger.error(f"Error starting services: {e}")
            await self.stop()
            raise

    async def stop(self):
        """Остановка всех сервисов"""
        if not self.running:
            return

        logger.info("Stopping MORI Bot...")

        self.running = False

        # Останавливаем сервисы в обратном порядке
        try:
            await price_alert_service.stop()
            await telegram_bot.stop()
            await web_server.stop()
        except Exception as e:
            logger.error(f"Error stopping services: {e}")

        self._stopped.set()
        logger.info("MORI Bot stopped")

    async def health_check(self):
        """Проверка здоровья всех сервисов"""
        health_status = {}

        for name, service in self.services.items():
            if hasattr(service, 'health_check'):
                try:
                    health_status[name] = await service.health_check()
                except Exception as e:
                    health_status[name] = {
                        'healthy': False,
                        'error': str(e)
                    }

        # Общий статус
        all_healthy = all(
            status.get('healthy', False)
            for status in health_status.values()
        )

        return {
            'healthy': all_healthy,
            'services': health_status
        }

    def print_stats(self):
        """Вывод статистики"""
        logger.info("=== Service Statistics ===")
        logger.info(f"Subscribers: {subscribers.get_stats()}")
        logger.info(f"Price Alerts: {price_alert_service.get_stats()}")
        logger.info(f"Message Queue: {message_queue.get_stats()}")


# Глобальный инстанс
bot_app: Optional[MoriBot] = None


async def main():
    """Главная функция"""
    global bot_app

    setup_logging()
    bot_app = MoriBot()

    loop = asyncio.get_running_loop()

    def on_signal(sig):
        logger.info(f"Received signal {sig.name}, shutting down gracefully...")
        if bot_app and bot_app.running:
            bot_app.print_stats()
            asyncio.create_task(bot_app.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, on_signal, sig)
        except NotImplementedError:
            # Windows
            signal.signal(sig, lambda s, f: on_signal(signal.Signals(s)))

    try:
        await bot_app.start()
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        await bot_app.stop()


def cli():
    """Точка входа консольной команды"""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    cli()
