from enum import Enum
from decimal import Decimal
from typing import Union
from dataclasses import dataclass

from models.price import PriceObservation


class AlertType(Enum):
    """Типы алертов в системе"""
    CHANGE_SIGNAL = "change_signal"
    TARGET_HIT = "target_hit"


class TargetSide(Enum):
    """Сторона целевой цены"""
    MAX = "max"
    MIN = "min"


@dataclass(frozen=True)
class ChangeSignal:
    """Сигнал об изменении цены между двумя опросами"""
    user_id: int
    observation: PriceObservation
    change_percent: Decimal

    alert_type = AlertType.CHANGE_SIGNAL


@dataclass(frozen=True)
class TargetHit:
    """Цена пересекла целевой уровень"""
    user_id: int
    observation: PriceObservation
    side: TargetSide
    target: Decimal

    alert_type = AlertType.TARGET_HIT


NotificationEvent = Union[ChangeSignal, TargetHit]
