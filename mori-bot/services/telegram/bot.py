import logging
from typing import Optional
from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.types import BotCommand
from aiogram.webhook.aiohttp_server import SimpleRequestHandler
from aiohttp import web

from config.settings import config
from services.price_alerts.alert_types import NotificationEvent
from services.telegram.formatter import AlertFormatter
from services.telegram.handlers import register_all_handlers
from utils.queue import message_queue

logger = logging.getLogger(__name__)


class TelegramBot:
    """Основной класс Telegram бота, получатель событий мониторинга"""

    def __init__(self):
        self.bot: Optional[Bot] = None
        self.dp: Optional[Dispatcher] = None

        # Форматировщик алертов
        self.formatter = AlertFormatter()

        self.running = False

    def setup(self, web_app: Optional[web.Application] = None):
        """Создание бота и диспетчера; в режиме webhook регистрирует маршрут в web_app"""
        self.bot = Bot(
            token=config.BOT_TOKEN,
            default=DefaultBotProperties(
                parse_mode=ParseMode.HTML
            )
        )

        self.dp = Dispatcher(storage=MemoryStorage())

        # Устанавливаем бота в очередь сообщений
        message_queue.set_bot(self.bot)

        # Регистрируем обработчики
        register_all_handlers(self.dp)

        if self.use_webhook and web_app is not None:
            SimpleRequestHandler(dispatcher=self.dp, bot=self.bot).register(
                web_app, path=config.webhook_path
            )
            logger.info("Webhook route registered")

    @property
    def use_webhook(self) -> bool:
        return bool(config.WEBHOOK_URL)

    async def start(self):
        """Запуск бота; в режиме polling блокирует до остановки"""
        logger.info("Starting Telegram bot...")

        if self.bot is None:
            self.setup()

        # Запуск очереди сообщений
        await message_queue.start_processing()
        logger.info("Message queue processing started")

        bot_info = await self.bot.get_me()
        logger.info(f"Bot started: @{bot_info.username}")

        await self.set_bot_commands()

        self.running = True

        if self.use_webhook:
            webhook_url = f"{config.WEBHOOK_URL.rstrip('/')}{config.webhook_path}"
            await self.bot.set_webhook(webhook_url, allowed_updates=["message", "callback_query"])
            logger.info(f"Webhook set to {config.WEBHOOK_URL.rstrip('/')}/webhook/***")
            return

        await self.bot.delete_webhook(drop_pending_updates=False)
        await self.dp.start_polling(
            self.bot,
            allowed_updates=["message", "callback_query"],
            handle_signals=False
        )

    async def stop(self):
        """Остановка бота"""
        logger.info("Stopping Telegram bot...")

        self.running = False

        await message_queue.stop_processing()

        if self.dp is not None and not self.use_webhook:
            try:
                await self.dp.stop_polling()
            except RuntimeError:
                # polling не был запущен
                pass

        if self.bot is not None:
            await self.bot.session.close()

        logger.info("Telegram bot stopped")

    async def set_bot_commands(self):
        """Установка команд бота в меню"""
        commands = [
            BotCommand(command="price", description="💰 Текущая цена"),
            BotCommand(command="targets", description="🎯 Целевые значения"),
            BotCommand(command="settings", description="⚙️ Настройки уведомлений"),
            BotCommand(command="alerts", description="🔔 Управление уведомлениями"),
            BotCommand(command="help", description="❓ Помощь")
        ]

        try:
            await self.bot.set_my_commands(commands)
            logger.info("Menu commands set successfully")
        except Exception as e:
            logger.error(f"Error setting menu commands: {e}")

    # === ПОЛУЧАТЕЛЬ СОБЫТИЙ ===

    async def notify(self, event: NotificationEvent) -> None:
        """Форматирование события и постановка в очередь отправки"""
        text = self.formatter.format_event(event)
        await message_queue.add_alert(event.user_id, text)

    async def health_check(self) -> dict:
        return {
            'healthy': self.running,
            'mode': 'webhook' if self.use_webhook else 'polling',
            'queue': await message_queue.health_check()
        }


# Singleton instance
telegram_bot = TelegramBot()
