from decimal import Decimal
from typing import Optional

from cache.memory import AlertSettings
from config.settings import config
from models.price import PriceObservation
from services.price_alerts.alert_types import ChangeSignal, TargetHit, TargetSide, NotificationEvent


def format_price(price: Decimal) -> str:
    return f"${price:.{config.PRICE_DISPLAY_PRECISION}f}"


def format_target(target: Optional[Decimal]) -> str:
    return f"${target.normalize():f}" if target is not None else "Не установлен"


def format_market_cap(market_cap: Optional[int]) -> str:
    return f"${market_cap:,}".replace(",", " ") if market_cap else "—"


class AlertFormatter:
    """Форматировщик алертов и сообщений (HTML)"""

    @staticmethod
    def _price_block(observation: PriceObservation) -> str:
        return (
            f"💰 Текущая цена: {format_price(observation.price)}\n"
            f"📊 Изменение за 24ч: {observation.change_24h:.2f}%\n"
            f"🐳 Капитализация: {format_market_cap(observation.market_cap)}"
        )

    @classmethod
    def format_change_signal(cls, event: ChangeSignal) -> str:
        """Форматирование сигнала изменения цены"""
        rising = event.change_percent > 0
        emoji = "🚀" if rising else "⚠️"
        change_text = "выросла" if rising else "упала"
        return (
            f"{emoji} <b>Сигнал!</b>\n\n"
            f"{cls._price_block(event.observation)}\n"
            f"⚡ Изменение: {change_text} на {abs(event.change_percent):.2f}%"
        )

    @classmethod
    def format_target_hit(cls, event: TargetHit) -> str:
        """Форматирование алерта целевой цены"""
        if event.side is TargetSide.MAX:
            emoji, title, direction = "🚀", "ЦЕНА ПРОБИЛА МАКСИМУМ!", "выше"
        else:
            emoji, title, direction = "⚠️", "ЦЕНА УПАЛА НИЖЕ МИНИМУМА!", "ниже"

        return (
            f"{emoji} <b>{title}</b>\n\n"
            f"🎯 Целевая цена: {format_target(event.target)}\n"
            f"{cls._price_block(event.observation)}\n\n"
            f"⚡ Цена стала {direction} установленного уровня!"
        )

    @classmethod
    def format_event(cls, event: NotificationEvent) -> str:
        if isinstance(event, ChangeSignal):
            return cls.format_change_signal(event)
        if isinstance(event, TargetHit):
            return cls.format_target_hit(event)
        raise ValueError(f"Unknown event type: {type(event).__name__}")

    @classmethod
    def format_price_info(cls, observation: PriceObservation) -> str:
        """Ответ на /price"""
        trend = "🚀 Рост" if observation.change_24h > 0 else "📉 Падение"
        return (
            f"💰 <b>Цена ${config.ASSET_SYMBOL}</b>\n\n"
            f"{cls._price_block(observation)}\n"
            f"⏰ Обновлено: {observation.observed_at.strftime('%d.%m.%Y %H:%M:%S')}\n\n"
            f"{trend}"
        )

    @staticmethod
    def format_settings(settings: AlertSettings) -> str:
        """Ответ на /settings"""
        return (
            "⚙️ <b>Настройки уведомлений</b>\n\n"
            f"🔔 Уведомления: {'Включены ✅' if settings.alerts_enabled else 'Выключены ❌'}\n"
            f"📊 Порог уведомлений: {settings.change_threshold}%\n"
            f"⏱️ Интервал проверки: {config.PRICE_CHECK_INTERVAL} сек (общий для всех)\n\n"
            "🎯 <b>Ценовые цели:</b>\n"
            f"📈 Максимум: {format_target(settings.max_target)}\n"
            f"📉 Минимум: {format_target(settings.min_target)}\n\n"
            "<b>Команды для изменения:</b>\n"
            "• /alerts on/off - включить/выключить уведомления\n"
            "• /threshold [число] - изменить порог (например: /threshold 10)\n"
            "• /pmax [цена] - установить максимум (например: /pmax 0.1745)\n"
            "• /pmin [цена] - установить минимум (например: /pmin 0.15)\n"
            "• /targets - подробный просмотр целей"
        )

    @staticmethod
    def format_targets(settings: AlertSettings, observation: Optional[PriceObservation]) -> str:
        """Ответ на /targets с расстоянием до целей"""
        current = format_price(observation.price) if observation else "Недоступна"
        text = "🎯 <b>Целевые значения</b>\n\n"
        text += f"💰 Текущая цена: {current}\n\n"

        for side, target, icon, label in (
            (TargetSide.MAX, settings.max_target, "📈", "Максимум"),
            (TargetSide.MIN, settings.min_target, "📉", "Минимум"),
        ):
            text += f"{icon} {label}: {format_target(target)}\n"
            if target is None or observation is None:
                text += "\n"
                continue

            distance = (target - observation.price) / observation.price * 100
            pending = distance > 0 if side is TargetSide.MAX else distance < 0
            if pending:
                text += f"   {'↗️' if side is TargetSide.MAX else '↘️'} До цели: {distance:+.2f}%\n\n"
            else:
                text += "   ✅ Цель достигнута\n\n"

        text += (
            "<b>Команды управления:</b>\n"
            "• /pmax [цена] - установить максимум (/pmax off - отключить)\n"
            "• /pmin [цена] - установить минимум (/pmin off - отключить)"
        )
        return text

    @staticmethod
    def format_alerts_status(settings: AlertSettings) -> str:
        """Ответ на /alerts"""
        return (
            "🔔 <b>Управление уведомлениями</b>\n\n"
            f"Текущий статус: {'Включены ✅' if settings.alerts_enabled else 'Выключены ❌'}\n\n"
            "<b>Команды:</b>\n"
            "• /alerts on - включить уведомления\n"
            "• /alerts off - выключить уведомления\n"
            f"• /threshold [число] - установить порог изменения "
            f"({config.MIN_CHANGE_THRESHOLD}-{config.MAX_CHANGE_THRESHOLD}%)\n\n"
            "💡 Когда уведомления включены, вы получите сигнал при изменении цены на установленный процент."
        )

