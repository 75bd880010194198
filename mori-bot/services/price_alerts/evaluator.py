"""
Решение об уведомлениях для одного подписчика.

Чистая функция: по настройкам, предыдущей цене и новому наблюдению
возвращает события и обновленные настройки (флаги срабатывания целей).
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import List, Optional

from cache.memory import AlertSettings
from config.settings import config
from models.price import PriceObservation
from services.price_alerts.alert_types import ChangeSignal, NotificationEvent, TargetHit, TargetSide

HUNDRED = Decimal(100)


@dataclass
class EvaluationResult:
    """Результат оценки одного подписчика"""
    settings: AlertSettings
    events: List[NotificationEvent] = field(default_factory=list)


def change_percent(last_price: Optional[Decimal], price: Decimal) -> Optional[Decimal]:
    """Процент изменения между опросами; None если предыдущей цены нет или она нулевая"""
    if last_price is None or last_price == 0:
        return None
    return (price - last_price) / last_price * HUNDRED


def evaluate(user_id: int, settings: AlertSettings, last_price: Optional[Decimal],
             observation: PriceObservation) -> EvaluationResult:
    """
    Оценка правил подписчика по одному снимку цены.

    Правила целей используют флаги из исходных настроек: сброс флага
    не срабатывает в том же цикле, что и сам алерт.
    """
    if not settings.alerts_enabled:
        return EvaluationResult(settings=settings)

    price = observation.price
    events: List[NotificationEvent] = []

    # Изменение цены в процентах
    change = change_percent(last_price, price)
    if change is not None and abs(change) >= settings.change_threshold:
        events.append(ChangeSignal(user_id=user_id, observation=observation, change_percent=change))

    # Максимальная цена
    max_triggered = settings.max_triggered
    if settings.max_target is not None:
        if not settings.max_triggered and price >= settings.max_target:
            events.append(TargetHit(user_id=user_id, observation=observation,
                                    side=TargetSide.MAX, target=settings.max_target))
            max_triggered = True
        elif settings.max_triggered and price < settings.max_target * config.MAX_TARGET_RESET_FACTOR:
            max_triggered = False

    # Минимальная цена
    min_triggered = settings.min_triggered
    if settings.min_target is not None:
        if not settings.min_triggered and price <= settings.min_target:
            events.append(TargetHit(user_id=user_id, observation=observation,
                                    side=TargetSide.MIN, target=settings.min_target))
            min_triggered = True
        elif settings.min_triggered and price > settings.min_target * config.MIN_TARGET_RESET_FACTOR:
            min_triggered = False

    updated = replace(settings, max_triggered=max_triggered, min_triggered=min_triggered)
    return EvaluationResult(settings=updated, events=events)
