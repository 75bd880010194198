import asyncio
import logging

from models.price import PriceObservation, PriceSnapshot

logger = logging.getLogger(__name__)


class PriceHistory:
    """Последняя наблюдаемая цена и время ее получения"""

    def __init__(self):
        self._snapshot = PriceSnapshot()
        self._lock = asyncio.Lock()

    @property
    def last_price(self):
        return self._snapshot.last_price

    @property
    def last_update(self):
        return self._snapshot.last_update

    def snapshot(self) -> PriceSnapshot:
        """Неизменяемый снимок текущего состояния"""
        return self._snapshot

    async def commit(self, observation: PriceObservation) -> PriceSnapshot:
        """Фиксация новой цены - последний шаг прохода опроса"""
        async with self._lock:
            previous = self._snapshot
            self._snapshot = PriceSnapshot(
                last_price=observation.price,
                last_update=observation.observed_at
            )

        logger.debug(f"Price history updated: {previous.last_price} -> {observation.price}")
        return self._snapshot

    def get_stats(self) -> dict:
        return {
            'last_price': str(self._snapshot.last_price) if self._snapshot.last_price is not None else None,
            'last_update': self._snapshot.last_update.isoformat() if self._snapshot.last_update else None
        }


# Singleton instance
price_history = PriceHistory()
