from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class PriceObservation:
    """Наблюдение цены за один опрос. Создается заново на каждый опрос."""
    price: Decimal
    change_24h: Decimal = Decimal(0)  # информативно, в расчетах порога не участвует
    market_cap: Optional[int] = None  # косметические метаданные
    source: str = ""
    observed_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if self.price <= 0:
            raise ValueError(f"Price must be positive, got {self.price}")


@dataclass(frozen=True)
class PriceSnapshot:
    """Снимок истории цены"""
    last_price: Optional[Decimal] = None
    last_update: Optional[datetime] = None
