import logging
import time
from typing import Optional, Callable, Awaitable, Dict, Any
from aiohttp import web

from cache.memory import SubscriberStore, subscribers
from cache.price_history import PriceHistory, price_history
from config.settings import config

logger = logging.getLogger(__name__)

HealthProvider = Callable[[], Awaitable[Dict[str, Any]]]


class WebServer:
    """HTTP сервер: проверка живости и маршрут webhook"""

    def __init__(self, store: SubscriberStore, history: PriceHistory):
        self.store = store
        self.history = history
        self.health_provider: Optional[HealthProvider] = None

        self.app = web.Application()
        self.app.router.add_get("/", self.handle_index)
        self.app.router.add_get("/health", self.handle_health)

        self._runner: Optional[web.AppRunner] = None
        self._started_at = time.monotonic()

    def set_health_provider(self, provider: HealthProvider):
        """Источник подробного статуса сервисов"""
        self.health_provider = provider

    async def handle_index(self, request: web.Request) -> web.Response:
        return web.Response(text=f"${config.ASSET_SYMBOL} Telegram Bot is running! 🚀")

    async def handle_health(self, request: web.Request) -> web.Response:
        last_update = self.history.last_update
        payload = {
            'status': 'ok',
            'uptime': round(time.monotonic() - self._started_at, 1),
            'users': len(self.store),
            'last_price': str(self.history.last_price) if self.history.last_price is not None else None,
            'last_price_update': last_update.isoformat() if last_update else None
        }

        if self.health_provider is not None:
            try:
                services = await self.health_provider()
                payload['services'] = services
                if not services.get('healthy', False):
                    payload['status'] = 'degraded'
            except Exception as e:
                logger.error(f"Health check failed: {e}")
                payload['status'] = 'degraded'

        return web.json_response(payload)

    async def start(self, host: str = config.WEB_HOST, port: int = config.WEB_PORT):
        """Запуск сервера"""
        self._runner = web.AppRunner(self.app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, host, port)
        await site.start()
        logger.info(f"Server is running on port {port}")

    async def stop(self):
        """Остановка сервера"""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        logger.info("Web server stopped")


# Singleton instance
web_server = WebServer(subscribers, price_history)
