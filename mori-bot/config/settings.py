import os
from decimal import Decimal
from typing import List, Tuple
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()


@dataclass
class Config:
    """Централизованная конфигурация приложения"""

    # === TELEGRAM BOT ===
    BOT_TOKEN: str = os.getenv("BOT_TOKEN", "")
    WEBHOOK_URL: str = os.getenv("WEBHOOK_URL", "")  # пусто - работаем через polling

    # === WEB SERVER ===
    WEB_HOST: str = os.getenv("WEB_HOST", "0.0.0.0")
    WEB_PORT: int = int(os.getenv("PORT", "3000"))

    # === ОТСЛЕЖИВАЕМЫЙ ТОКЕН ===
    ASSET_SYMBOL: str = "MORI"
    COINGECKO_COIN_ID: str = "mori-coin"
    VS_CURRENCY: str = "usd"

    # === PRICE PROVIDERS ===
    COINGECKO_API_URL: str = "https://api.coingecko.com/api/v3/simple/price"
    DEXSCREENER_API_URL: str = "https://api.dexscreener.com/latest/dex/search/"
    HTTP_REQUEST_TIMEOUT: int = 10  # seconds

    # CoinGecko free tier
    PRICE_API_RATE_LIMIT: int = 30  # requests per minute
    PRICE_API_RATE_PERIOD: float = 60.0  # seconds

    # === PRICE MONITORING ===
    PRICE_CHECK_INTERVAL: int = 60  # секунд между проверками, единый для всех

    # === ALERT SETTINGS ===
    DEFAULT_CHANGE_THRESHOLD: int = 5  # процент изменения между проверками
    MIN_CHANGE_THRESHOLD: int = 1
    MAX_CHANGE_THRESHOLD: int = 100

    # Гистерезис для целевых цен
    MAX_TARGET_RESET_FACTOR: Decimal = Decimal("0.95")
    MIN_TARGET_RESET_FACTOR: Decimal = Decimal("1.05")

    # === MESSAGE QUEUE SETTINGS ===
    QUEUE_PROCESSING_INTERVAL: float = 1.0  # seconds между проверками очереди
    QUEUE_MAX_MESSAGES_PER_MINUTE: int = 30
    QUEUE_RATE_LIMIT_WINDOW: int = 60  # seconds

    # === LOGGING ===
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: str = "mori_bot.log"
    LOG_FILE_ENCODING: str = "utf-8"

    # === ERROR HANDLING ===
    MAX_ERROR_RATE: float = 0.5  # максимальный процент ошибок для health check

    # === DISPLAY ===
    PRICE_DISPLAY_PRECISION: int = 8

    # Предустановленные пороги для клавиатуры
    THRESHOLD_PRESETS: List[int] = field(default_factory=lambda: [3, 5, 10, 15, 25])

    def validate(self) -> None:
        """Валидация обязательных параметров"""
        if not self.BOT_TOKEN:
            raise ValueError("BOT_TOKEN не установлен в переменных окружения")

        if self.PRICE_CHECK_INTERVAL <= 0:
            raise ValueError("PRICE_CHECK_INTERVAL должен быть больше 0")

        if not 1 <= self.MIN_CHANGE_THRESHOLD <= self.DEFAULT_CHANGE_THRESHOLD <= self.MAX_CHANGE_THRESHOLD:
            raise ValueError("DEFAULT_CHANGE_THRESHOLD должен быть между MIN и MAX")

        if not Decimal(0) < self.MAX_TARGET_RESET_FACTOR < Decimal(1) < self.MIN_TARGET_RESET_FACTOR:
            raise ValueError("Коэффициенты сброса целей должны окружать 1")

    @property
    def webhook_path(self) -> str:
        return f"/webhook/{self.BOT_TOKEN}"

    def get_threshold_presets_keyboard_data(self) -> List[Tuple[str, str]]:
        """Получение данных для клавиатуры порогов"""
        return [(f"{preset}%", f"threshold_{preset}") for preset in self.THRESHOLD_PRESETS]


config = Config()
