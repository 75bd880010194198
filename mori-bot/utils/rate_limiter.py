import asyncio
from typing import Optional, Dict, Any
from collections import deque
import time
import logging

from config.settings import config

logger = logging.getLogger(__name__)


class RateLimiter:
    """Скользящее окно вызовов API"""

    def __init__(self, rate: int, per: float = 1.0, burst: Optional[int] = None):
        """
        Args:
            rate: Количество разрешенных вызовов
            per: Период в секундах
            burst: Максимальный burst size (если None, то = rate)
        """
        self.rate = rate
        self.per = per
        self.burst = burst or rate
        self.calls = deque(maxlen=self.burst)
        self._lock = asyncio.Lock()
        self.stats = {
            'acquired': 0,
            'waited': 0
        }

    async def acquire(self, n: int = 1) -> float:
        """
        Получение разрешения на n вызовов
        Возвращает время ожидания в секундах
        """
        async with self._lock:
            now = time.monotonic()

            # Удаляем старые вызовы
            while self.calls and self.calls[0] <= now - self.per:
                self.calls.popleft()

            self.stats['acquired'] += n

            if len(self.calls) + n <= self.rate:
                for _ in range(n):
                    self.calls.append(now)
                return 0.0

            # Вычисляем время ожидания
            wait_time = max(self.calls[0] + self.per - now, 0.0)
            self.stats['waited'] += 1
            logger.debug(f"Rate limit reached, waiting {wait_time:.2f}s")

            await asyncio.sleep(wait_time)
            for _ in range(n):
                self.calls.append(time.monotonic())

            return wait_time

    def get_stats(self) -> Dict[str, Any]:
        return {
            **self.stats,
            'window_calls': len(self.calls)
        }


# Лимит для провайдеров цены
price_api_limiter = RateLimiter(config.PRICE_API_RATE_LIMIT, config.PRICE_API_RATE_PERIOD)
