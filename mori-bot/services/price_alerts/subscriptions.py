"""
Изменение настроек подписчиков.

Все входные значения проверяются здесь, до попадания в хранилище:
порог в [MIN_CHANGE_THRESHOLD, MAX_CHANGE_THRESHOLD], цели строго больше нуля.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from cache.memory import AlertSettings, SubscriberStore, subscribers
from config.settings import config
from services.price_alerts.alert_types import TargetSide

logger = logging.getLogger(__name__)

# Текстовые варианты отключения цели
CLEAR_TARGET_WORDS = {"-1", "0", "off", "none", "откл"}


class InvalidConfigInput(ValueError):
    """Недопустимое значение настройки"""


def parse_threshold(text: str) -> int:
    """Разбор порога изменения в процентах"""
    try:
        threshold = int(text.strip().rstrip("%"))
    except (ValueError, AttributeError):
        raise InvalidConfigInput(f"Threshold must be an integer, got {text!r}")

    if not config.MIN_CHANGE_THRESHOLD <= threshold <= config.MAX_CHANGE_THRESHOLD:
        raise InvalidConfigInput(
            f"Threshold must be between {config.MIN_CHANGE_THRESHOLD} and {config.MAX_CHANGE_THRESHOLD}"
        )
    return threshold


def is_clear_target(text: str) -> bool:
    return text.strip().lower() in CLEAR_TARGET_WORDS


def parse_target(text: str) -> Decimal:
    """Разбор целевой цены"""
    try:
        target = Decimal(text.strip().replace(",", "."))
    except (InvalidOperation, AttributeError):
        raise InvalidConfigInput(f"Target must be a number, got {text!r}")

    if not target.is_finite() or target <= 0:
        raise InvalidConfigInput(f"Target must be positive, got {text!r}")
    return target


class SubscriptionManager:
    """Операции над настройками подписчиков для слоя команд"""

    def __init__(self, store: SubscriberStore):
        self.store = store

    async def register(self, user_id: int) -> AlertSettings:
        """Регистрация подписчика (или получение существующих настроек)"""
        return await self.store.get_or_create(user_id)

    async def update(self, user_id: int, mutator) -> AlertSettings:
        return await self.store.update(user_id, mutator)

    async def set_alerts_enabled(self, user_id: int, enabled: bool) -> AlertSettings:
        def mutate(settings: AlertSettings):
            settings.alerts_enabled = enabled

        logger.info(f"User {user_id} alerts {'enabled' if enabled else 'disabled'}")
        return await self.store.update(user_id, mutate)

    async def set_change_threshold(self, user_id: int, threshold: Union[int, str]) -> AlertSettings:
        if isinstance(threshold, str):
            threshold = parse_threshold(threshold)
        elif isinstance(threshold, bool) or not isinstance(threshold, int):
            raise InvalidConfigInput(f"Threshold must be an integer, got {threshold!r}")
        elif not config.MIN_CHANGE_THRESHOLD <= threshold <= config.MAX_CHANGE_THRESHOLD:
            raise InvalidConfigInput(f"Threshold out of range: {threshold}")

        def mutate(settings: AlertSettings):
            settings.change_threshold = threshold

        logger.info(f"User {user_id} threshold set to {threshold}%")
        return await self.store.update(user_id, mutate)

    async def set_target(self, user_id: int, side: TargetSide,
                         target: Union[Decimal, str]) -> AlertSettings:
        """Установка целевой цены; флаг срабатывания сбрасывается"""
        if isinstance(target, str):
            target = parse_target(target)
        elif not isinstance(target, Decimal) or not target.is_finite() or target <= 0:
            raise InvalidConfigInput(f"Target must be a positive decimal, got {target!r}")

        logger.info(f"User {user_id} {side.value} target set to {target}")
        return await self.store.update(user_id, lambda s: _with_target(s, side, target))

    async def clear_target(self, user_id: int, side: TargetSide) -> AlertSettings:
        """Единая операция отключения цели"""
        logger.info(f"User {user_id} {side.value} target cleared")
        return await self.store.update(user_id, lambda s: _with_target(s, side, None))


def _with_target(settings: AlertSettings, side: TargetSide, target: Optional[Decimal]) -> AlertSettings:
    if side is TargetSide.MAX:
        settings.max_target = target
        settings.max_triggered = False
    else:
        settings.min_target = target
        settings.min_triggered = False
    return settings


# Singleton instance
subscription_manager = SubscriptionManager(subscribers)
