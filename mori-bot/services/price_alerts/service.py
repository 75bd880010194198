import asyncio
import logging
from typing import Optional, Dict, Any, List, Protocol
from datetime import datetime

from cache.memory import SubscriberStore, subscribers
from cache.price_history import PriceHistory, price_history
from config.settings import config
from services.price_alerts.alert_types import NotificationEvent, ChangeSignal
from services.price_alerts.evaluator import evaluate
from services.price_source.service import PriceSourceService, price_source

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Получатель событий (транспортный слой)"""

    async def notify(self, event: NotificationEvent) -> None:
        ...


class PriceAlertService:
    """Сервис мониторинга цены: опрос, оценка подписчиков, рассылка, фиксация цены"""

    def __init__(self, source: PriceSourceService, store: SubscriberStore,
                 history: PriceHistory, notifier: Optional[Notifier] = None):
        self.source = source
        self.store = store
        self.history = history
        self.notifier = notifier

        self.running = False
        self.monitor_task = None

        # Один проход опроса за раз
        self._pass_lock = asyncio.Lock()
        self.last_check_time: Optional[datetime] = None

        # Статистика
        self.stats = {
            'checks_performed': 0,
            'ticks_skipped': 0,
            'source_unavailable': 0,
            'change_signals': 0,
            'target_hits': 0,
            'delivery_errors': 0
        }

    def set_notifier(self, notifier: Notifier):
        """Установка получателя событий"""
        self.notifier = notifier

    @property
    def polling(self) -> bool:
        return self._pass_lock.locked()

    async def start(self):
        """Запуск сервиса"""
        if self.running:
            return

        logger.info("Starting Price Alert Service...")

        await self.source.initialize()

        self.running = True
        self.monitor_task = asyncio.create_task(self._monitor_loop())

        logger.info(f"Price Alert Service started, interval {config.PRICE_CHECK_INTERVAL}s")

    async def stop(self):
        """Остановка сервиса"""
        logger.info("Stopping Price Alert Service...")

        self.running = False

        if self.monitor_task:
            self.monitor_task.cancel()
            try:
                await self.monitor_task
            except asyncio.CancelledError:
                pass
            self.monitor_task = None

        await self.source.close()
        logger.info("Price Alert Service stopped")

    async def _monitor_loop(self):
        """Основной цикл мониторинга - первая проверка сразу после старта"""
        while self.running:
            try:
                await self.on_tick()
            except Exception as e:
                logger.error(f"Error in price monitor loop: {e}")

            await asyncio.sleep(config.PRICE_CHECK_INTERVAL)

    async def on_tick(self) -> List[NotificationEvent]:
        """
        Один проход опроса. Если предыдущий проход еще идет, тик отбрасывается.
        Возвращает разосланные события.
        """
        if self._pass_lock.locked():
            self.stats['ticks_skipped'] += 1
            logger.warning("Previous price check still in progress, skipping tick")
            return []

        async with self._pass_lock:
            return await self._run_pass()

    async def _run_pass(self) -> List[NotificationEvent]:
        observation = await self.source.fetch()

        if observation is None:
            self.stats['source_unavailable'] += 1
            logger.warning("Price unavailable, skipping check")
            return []

        self.last_check_time = datetime.now()
        self.stats['checks_performed'] += 1

        # Все подписчики оцениваются по одной и той же предыдущей цене
        last_price = self.history.last_price
        logger.debug(f"Price observed: {observation.price} (last {last_price})")

        events = await self._evaluate_all(last_price, observation)

        await self._dispatch(events)

        # Фиксация цены - последний шаг прохода
        await self.history.commit(observation)

        return events

    async def _evaluate_all(self, last_price, observation) -> List[NotificationEvent]:
        """Оценка подписчиков; чтение-изменение-запись под блокировкой подписчика"""
        events: List[NotificationEvent] = []

        for user_id in await self.store.user_ids():
            user_events: List[NotificationEvent] = []

            def mutate(settings, user_id=user_id, user_events=user_events):
                result = evaluate(user_id, settings, last_price, observation)
                user_events.extend(result.events)
                return result.settings

            await self.store.update(user_id, mutate)
            events.extend(user_events)

        return events

    async def _dispatch(self, events: List[NotificationEvent]):
        """Рассылка событий; ошибки доставки не влияют на состояние"""
        if not events:
            return

        for event in events:
            if isinstance(event, ChangeSignal):
                self.stats['change_signals'] += 1
            else:
                self.stats['target_hits'] += 1

            if self.notifier is None:
                logger.warning(f"No notifier set, dropping {event.alert_type.value} for user {event.user_id}")
                continue

            try:
                await self.notifier.notify(event)
            except Exception as e:
                self.stats['delivery_errors'] += 1
                logger.error(f"Error dispatching {event.alert_type.value} to user {event.user_id}: {e}")

        logger.info(f"Dispatched {len(events)} price alerts")

    def get_stats(self) -> Dict[str, Any]:
        """Получение статистики сервиса"""
        return {
            **self.stats,
            'running': self.running,
            'polling': self.polling,
            'last_check_time': self.last_check_time.isoformat() if self.last_check_time else None,
            'price_history': self.history.get_stats(),
            'source_stats': self.source.get_stats()
        }

    async def health_check(self) -> Dict[str, Any]:
        """Проверка здоровья сервиса"""
        is_healthy = True
        issues = []

        if not self.running:
            is_healthy = False
            issues.append("Service not running")

        # Проверяем давность последней проверки
        if self.last_check_time:
            age = (datetime.now() - self.last_check_time).total_seconds()
            if age > config.PRICE_CHECK_INTERVAL * 2:
                is_healthy = False
                issues.append(f"Last check too old: {age:.0f}s ago")
        else:
            is_healthy = False
            issues.append("No checks performed yet")

        # Процент неудачных опросов
        attempts = self.stats['checks_performed'] + self.stats['source_unavailable']
        if attempts > 0:
            error_rate = self.stats['source_unavailable'] / attempts
            if error_rate > config.MAX_ERROR_RATE:
                is_healthy = False
                issues.append(f"High price source error rate: {error_rate:.2%}")

        return {
            'healthy': is_healthy,
            'issues': issues,
            'last_check_age': (datetime.now() - self.last_check_time).total_seconds() if self.last_check_time else None
        }


# Singleton instance
price_alert_service = PriceAlertService(price_source, subscribers, price_history)
