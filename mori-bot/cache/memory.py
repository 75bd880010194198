from typing import Dict, List, Optional, Tuple, Any, Callable
from collections import defaultdict
from dataclasses import dataclass, replace
from decimal import Decimal
import asyncio
import logging
from contextlib import asynccontextmanager

from config.settings import config

logger = logging.getLogger(__name__)


@dataclass
class AlertSettings:
    """Настройки уведомлений подписчика"""
    alerts_enabled: bool = True
    change_threshold: int = config.DEFAULT_CHANGE_THRESHOLD
    max_target: Optional[Decimal] = None
    max_triggered: bool = False
    min_target: Optional[Decimal] = None
    min_triggered: bool = False

    def copy(self) -> "AlertSettings":
        return replace(self)


class SubscriberStore:
    """In-memory хранилище настроек подписчиков"""

    def __init__(self):
        # user_id -> настройки, порядок вставки сохраняется
        self._subscribers: Dict[int, AlertSettings] = {}

        # Блокировка на каждого подписчика + общая на словарь
        self._user_locks: Dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._lock = asyncio.Lock()

        # Статистика
        self.stats = {
            'subscribers_created': 0,
            'updates': 0
        }

    @asynccontextmanager
    async def _user_lock(self, user_id: int):
        """Контекстный менеджер для блокировки одного подписчика"""
        async with self._user_locks[user_id]:
            yield

    def _create_if_missing(self, user_id: int) -> AlertSettings:
        """Создание настроек по умолчанию (без блокировки)"""
        settings = self._subscribers.get(user_id)
        if settings is None:
            settings = AlertSettings()
            self._subscribers[user_id] = settings
            self.stats['subscribers_created'] += 1
            logger.info(f"Registered new subscriber {user_id}")
        return settings

    async def get_or_create(self, user_id: int) -> AlertSettings:
        """Получение настроек подписчика, создает с умолчаниями при первом обращении"""
        async with self._lock:
            return self._create_if_missing(user_id).copy()

    async def get(self, user_id: int) -> Optional[AlertSettings]:
        """Получение настроек без создания"""
        async with self._lock:
            settings = self._subscribers.get(user_id)
            return settings.copy() if settings else None

    async def put(self, user_id: int, settings: AlertSettings) -> None:
        """Запись настроек подписчика"""
        async with self._lock:
            self._subscribers[user_id] = settings.copy()

    async def update(self, user_id: int,
                     mutator: Callable[[AlertSettings], Optional[AlertSettings]]) -> AlertSettings:
        """
        Атомарное чтение-изменение-запись настроек одного подписчика.
        mutator получает локальную копию; может вернуть новый объект или изменить копию.
        """
        async with self._user_lock(user_id):
            settings = await self.get_or_create(user_id)
            result = mutator(settings)
            if result is not None:
                settings = result
            await self.put(user_id, settings)
            self.stats['updates'] += 1
            return settings.copy()

    async def all(self) -> List[Tuple[int, AlertSettings]]:
        """Все подписчики в порядке регистрации"""
        async with self._lock:
            return [(user_id, settings.copy()) for user_id, settings in self._subscribers.items()]

    async def user_ids(self) -> List[int]:
        async with self._lock:
            return list(self._subscribers.keys())

    def __len__(self) -> int:
        return len(self._subscribers)

    # Статистика
    def get_stats(self) -> Dict[str, Any]:
        """Получение статистики хранилища"""
        return {
            **self.stats,
            'total_subscribers': len(self._subscribers),
            'alerts_enabled': sum(1 for s in self._subscribers.values() if s.alerts_enabled),
            'max_targets': sum(1 for s in self._subscribers.values() if s.max_target is not None),
            'min_targets': sum(1 for s in self._subscribers.values() if s.min_target is not None)
        }


# Singleton instance
subscribers = SubscriberStore()
