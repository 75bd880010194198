import asyncio
import aiohttp
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Dict, Any
from datetime import datetime

from config.settings import config
from models.price import PriceObservation
from utils.rate_limiter import RateLimiter, price_api_limiter

logger = logging.getLogger(__name__)


def to_decimal(value: Any) -> Optional[Decimal]:
    """Преобразование числа из ответа API; None если значение не число"""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def to_market_cap(value: Any) -> Optional[int]:
    amount = to_decimal(value)
    return int(amount) if amount is not None else None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


class PriceSourceService:
    """Получение цены токена: CoinGecko, при неудаче - DexScreener"""

    def __init__(self, limiter: Optional[RateLimiter] = None):
        self.session: Optional[aiohttp.ClientSession] = None
        self.limiter = limiter or price_api_limiter
        self._initialized = False

        # Статистика
        self.stats = {
            'requests_made': 0,
            'errors': 0,
            'primary_hits': 0,
            'secondary_hits': 0,
            'failures': 0,
            'last_request_time': None,
            'last_error': None
        }

    async def initialize(self):
        """Инициализация сервиса"""
        if self._initialized:
            return

        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=config.HTTP_REQUEST_TIMEOUT)
        )
        self._initialized = True
        logger.info("Price source initialized")

    async def close(self):
        """Закрытие сервиса"""
        if self.session:
            await self.session.close()
            self.session = None
        self._initialized = False
        logger.info("Price source closed")

    async def fetch(self) -> Optional[PriceObservation]:
        """Текущая цена; None если оба провайдера недоступны"""
        observation = await self.fetch_primary()
        if observation is not None:
            self.stats['primary_hits'] += 1
            return observation

        logger.warning("Primary price provider failed, falling back to DexScreener")

        observation = await self.fetch_secondary()
        if observation is not None:
            self.stats['secondary_hits'] += 1
            return observation

        self.stats['failures'] += 1
        logger.error(f"No price data for {config.ASSET_SYMBOL} from any provider")
        return None

    async def fetch_primary(self) -> Optional[PriceObservation]:
        """CoinGecko simple/price"""
        params = {
            'ids': config.COINGECKO_COIN_ID,
            'vs_currencies': config.VS_CURRENCY,
            'include_24hr_change': 'true',
            'include_market_cap': 'true'
        }
        data = await self._get_json(config.COINGECKO_API_URL, params)
        if not isinstance(data, dict):
            return None
        return self.parse_coingecko(data)

    async def fetch_secondary(self) -> Optional[PriceObservation]:
        """DexScreener search"""
        data = await self._get_json(config.DEXSCREENER_API_URL, {'q': config.ASSET_SYMBOL})
        if not isinstance(data, dict):
            return None
        return self.parse_dexscreener(data)

    @staticmethod
    def parse_coingecko(data: Dict[str, Any]) -> Optional[PriceObservation]:
        coin = data.get(config.COINGECKO_COIN_ID)
        if not isinstance(coin, dict):
            logger.warning(f"CoinGecko response has no data for {config.COINGECKO_COIN_ID}")
            return None

        price = to_decimal(coin.get(config.VS_CURRENCY))
        if price is None or price <= 0:
            logger.warning(f"Invalid CoinGecko price: {coin.get(config.VS_CURRENCY)!r}")
            return None

        return PriceObservation(
            price=price,
            change_24h=to_decimal(coin.get(f"{config.VS_CURRENCY}_24h_change")) or Decimal(0),
            market_cap=to_market_cap(coin.get(f"{config.VS_CURRENCY}_market_cap")),
            source="coingecko",
            observed_at=datetime.now()
        )

    @staticmethod
    def parse_dexscreener(data: Dict[str, Any]) -> Optional[PriceObservation]:
        pairs = data.get('pairs')
        if not isinstance(pairs, list):
            pairs = []
        symbol = config.ASSET_SYMBOL.upper()

        for pair in pairs:
            if not isinstance(pair, dict):
                continue

            # Пропускаем пары с другим базовым токеном
            base_symbol = _as_dict(pair.get('baseToken')).get('symbol')
            if base_symbol and (not isinstance(base_symbol, str) or base_symbol.upper() != symbol):
                continue

            # Берем первый подходящий результат
            price = to_decimal(pair.get('priceUsd'))
            if price is None or price <= 0:
                logger.warning(f"Invalid DexScreener price: {pair.get('priceUsd')!r}")
                return None

            return PriceObservation(
                price=price,
                change_24h=to_decimal(_as_dict(pair.get('priceChange')).get('h24')) or Decimal(0),
                market_cap=to_market_cap(pair.get('marketCap')),
                source="dexscreener",
                observed_at=datetime.now()
            )

        logger.warning(f"DexScreener returned no pairs for {symbol}")
        return None

    async def _get_json(self, url: str, params: Dict[str, str]) -> Optional[Any]:
        """GET запрос с обработкой ошибок; None при любой неудаче"""
        if not self._initialized:
            await self.initialize()

        try:
            await self.limiter.acquire()

            async with self.session.get(url, params=params) as response:
                self.stats['requests_made'] += 1
                self.stats['last_request_time'] = datetime.now()

                if response.status != 200:
                    logger.error(f"Price API HTTP error {response.status} from {url}")
                    self.stats['errors'] += 1
                    self.stats['last_error'] = f"HTTP {response.status}"
                    return None

                return await response.json(content_type=None)

        except asyncio.TimeoutError:
            logger.error(f"Price API request timeout: {url}")
            self.stats['errors'] += 1
            self.stats['last_error'] = "Request timeout"
            return None
        except (aiohttp.ClientError, ValueError) as e:
            logger.error(f"Error fetching price from {url}: {e}")
            self.stats['errors'] += 1
            self.stats['last_error'] = str(e)
            return None

    def get_stats(self) -> dict:
        """Получение статистики сервиса"""
        return {
            **self.stats,
            'initialized': self._initialized,
            'error_rate': self.stats['errors'] / max(self.stats['requests_made'], 1),
            'limiter': self.limiter.get_stats()
        }


# Singleton instance
price_source = PriceSourceService()
