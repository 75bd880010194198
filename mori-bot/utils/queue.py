import asyncio
from typing import Dict, List, Optional, Any
from dataclasses import dataclass
from datetime import datetime, timedelta
from collections import deque
import logging
from enum import Enum

from config.settings import config

logger = logging.getLogger(__name__)


class Priority(Enum):
    """Приоритеты сообщений"""
    LOW = 3
    NORMAL = 2
    HIGH = 1


@dataclass
class Message:
    """Сообщение в очереди"""
    priority: int
    timestamp: datetime
    user_id: int
    content: str
    reply_markup: Optional[Any] = None
    parse_mode: str = "HTML"

    def __post_init__(self):
        if isinstance(self.priority, Priority):
            self.priority = self.priority.value


class MessageQueue:
    """Очередь исходящих сообщений с ограничением отправки в минуту"""

    def __init__(self, bot_instance=None):
        self.bot = bot_instance

        self.message_queue: List[Message] = []

        self.processing = False
        self._lock = asyncio.Lock()

        # Rate limiting: N сообщений в минуту
        self._send_times = deque(maxlen=config.QUEUE_MAX_MESSAGES_PER_MINUTE)

        # Планировщик отправки
        self._scheduler_task = None

        # Статистика
        self.stats = {
            'messages_sent': 0,
            'alerts_sent': 0,
            'errors': 0,
            'rate_limited': 0
        }

    def set_bot(self, bot_instance):
        """Установка инстанса бота"""
        self.bot = bot_instance

    async def add_message(self, user_id: int, content: str,
                          priority: Priority = Priority.NORMAL,
                          reply_markup: Optional[Any] = None,
                          parse_mode: str = "HTML") -> None:
        """Добавление сообщения в очередь"""
        async with self._lock:
            message = Message(
                priority=priority,
                timestamp=datetime.now(),
                user_id=user_id,
                content=content,
                reply_markup=reply_markup,
                parse_mode=parse_mode
            )
            self.message_queue.append(message)

        logger.debug(f"Queued message for user {user_id} (priority {message.priority})")

    async def add_alert(self, user_id: int, content: str) -> None:
        """Алерты идут с высоким приоритетом"""
        await self.add_message(user_id, content, priority=Priority.HIGH)

    def _can_send_message(self) -> bool:
        """Проверка rate limit за последнее окно"""
        now = datetime.now()

        # Удаляем отправки старше окна
        while self._send_times and (now - self._send_times[0]) > timedelta(seconds=config.QUEUE_RATE_LIMIT_WINDOW):
            self._send_times.popleft()

        return len(self._send_times) < config.QUEUE_MAX_MESSAGES_PER_MINUTE

    async def start_processing(self) -> None:
        """Запуск планировщика обработки"""
        if self.processing:
            return

        self.processing = True
        self._scheduler_task = asyncio.create_task(self._scheduler_loop())

        logger.info(
            f"Message queue scheduler started - checking every {config.QUEUE_PROCESSING_INTERVAL}s, "
            f"max {config.QUEUE_MAX_MESSAGES_PER_MINUTE}/minute"
        )

    async def stop_processing(self) -> None:
        """Остановка обработки"""
        self.processing = False

        if self._scheduler_task:
            self._scheduler_task.cancel()
            try:
                await self._scheduler_task
            except asyncio.CancelledError:
                pass
            self._scheduler_task = None

        logger.info("Message queue scheduler stopped")

    async def _scheduler_loop(self):
        """Планировщик - отправляет по одному сообщению за интервал, если позволяет лимит"""
        while self.processing:
            try:
                await asyncio.sleep(config.QUEUE_PROCESSING_INTERVAL)

                if not self._can_send_message():
                    logger.debug("Rate limited - cannot send message")
                    self.stats['rate_limited'] += 1
                    continue

                if self.message_queue:
                    await self.send_next_message()

            except Exception as e:
                logger.error(f"Error in scheduler loop: {e}")

    async def send_next_message(self) -> bool:
        """
        Отправка следующего сообщения из очереди.
        Ошибка доставки логируется, сообщение не возвращается в очередь.
        """
        if not self.bot:
            return False

        async with self._lock:
            if not self.message_queue:
                return False
            self.message_queue.sort(key=lambda m: (m.priority, m.timestamp))
            message = self.message_queue.pop(0)

        try:
            await self.bot.send_message(
                chat_id=message.user_id,
                text=message.content,
                reply_markup=message.reply_markup,
                parse_mode=message.parse_mode
            )
        except Exception as e:
            logger.error(f"Error sending message to {message.user_id}: {e}")
            self.stats['errors'] += 1
            return False

        # Записываем время отправки для rate limiting
        self._send_times.append(datetime.now())

        self.stats['messages_sent'] += 1
        if message.priority == Priority.HIGH.value:
            self.stats['alerts_sent'] += 1
        logger.info(f"Message sent successfully to user {message.user_id}")
        return True

    def get_stats(self) -> Dict[str, Any]:
        """Получение статистики очереди"""
        return {
            **self.stats,
            'pending_messages': len(self.message_queue),
            'rate_limit_remaining': config.QUEUE_MAX_MESSAGES_PER_MINUTE - len(self._send_times)
        }

    async def health_check(self) -> Dict[str, Any]:
        attempts = self.stats['messages_sent'] + self.stats['errors']
        error_rate = self.stats['errors'] / attempts if attempts else 0.0
        return {
            'healthy': self.processing and error_rate <= config.MAX_ERROR_RATE,
            'pending_messages': len(self.message_queue),
            'error_rate': error_rate
        }


# Глобальный инстанс
message_queue = MessageQueue()
