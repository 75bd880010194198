# services/telegram/handlers/__init__.py
from .start import register_start_handlers
from .settings import register_settings_handlers
from .common import register_common_handlers

__all__ = [
    'register_start_handlers',
    'register_settings_handlers',
    'register_common_handlers'
]


def register_all_handlers(dp):
    """Регистрация всех обработчиков"""
    register_start_handlers(dp)
    register_settings_handlers(dp)
    register_common_handlers(dp)
