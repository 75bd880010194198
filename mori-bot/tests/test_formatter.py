# tests/test_formatter.py

"""Тесты текстов уведомлений."""

import unittest
from datetime import datetime
from decimal import Decimal

from cache.memory import AlertSettings
from config.settings import config
from models.price import PriceObservation
from services.price_alerts.alert_types import ChangeSignal, TargetHit, TargetSide
from services.telegram.formatter import AlertFormatter, format_market_cap, format_price, format_target


def observe(price: str, change: str = "0", market_cap=None) -> PriceObservation:
    return PriceObservation(
        price=Decimal(price),
        change_24h=Decimal(change),
        market_cap=market_cap,
        observed_at=datetime(2026, 10, 19, 12, 30, 0),
    )


class TestHelpers(unittest.TestCase):

    def test_price_uses_display_precision(self) -> None:
        self.assertEqual(format_price(Decimal("0.1")), "$0." + "1".ljust(config.PRICE_DISPLAY_PRECISION, "0"))

    def test_target_is_normalized(self) -> None:
        self.assertEqual(format_target(Decimal("0.1500")), "$0.15")
        self.assertEqual(format_target(Decimal("100")), "$100")
        self.assertEqual(format_target(None), "Не установлен")

    def test_market_cap(self) -> None:
        self.assertEqual(format_market_cap(1234567), "$1 234 567")
        self.assertEqual(format_market_cap(None), "—")


class TestAlertFormatter(unittest.TestCase):

    def test_change_signal_rising(self) -> None:
        event = ChangeSignal(user_id=1, observation=observe("1.06", "2.5", 1000),
                             change_percent=Decimal("6.0"))

        text = AlertFormatter.format_event(event)

        self.assertIn("🚀", text)
        self.assertIn("выросла на 6.00%", text)
        self.assertIn("2.50%", text)
        self.assertIn("$1 000", text)

    def test_change_signal_falling(self) -> None:
        event = ChangeSignal(user_id=1, observation=observe("0.9"), change_percent=Decimal("-10"))

        self.assertIn("упала на 10.00%", AlertFormatter.format_event(event))

    def test_target_hits(self) -> None:
        max_text = AlertFormatter.format_event(
            TargetHit(user_id=1, observation=observe("0.21"), side=TargetSide.MAX, target=Decimal("0.20"))
        )
        min_text = AlertFormatter.format_event(
            TargetHit(user_id=1, observation=observe("0.09"), side=TargetSide.MIN, target=Decimal("0.10"))
        )

        self.assertIn("МАКСИМУМ", max_text)
        self.assertIn("$0.2", max_text)
        self.assertIn("МИНИМУМА", min_text)
        self.assertIn("ниже", min_text)

    def test_unknown_event_rejected(self) -> None:
        with self.assertRaises(ValueError):
            AlertFormatter.format_event(object())

    def test_settings_shows_global_interval(self) -> None:
        text = AlertFormatter.format_settings(AlertSettings(change_threshold=7, max_target=Decimal("2")))

        self.assertIn("7%", text)
        self.assertIn(f"{config.PRICE_CHECK_INTERVAL} сек", text)
        self.assertIn("$2", text)

    def test_targets_distance(self) -> None:
        settings = AlertSettings(max_target=Decimal("0.12"), min_target=Decimal("0.05"))

        text = AlertFormatter.format_targets(settings, observe("0.10"))

        self.assertIn("+20.00%", text)
        self.assertIn("-50.00%", text)

    def test_targets_reached_and_unavailable(self) -> None:
        settings = AlertSettings(max_target=Decimal("0.08"))

        self.assertIn("Цель достигнута", AlertFormatter.format_targets(settings, observe("0.10")))
        self.assertIn("Недоступна", AlertFormatter.format_targets(settings, None))


if __name__ == "__main__":
    unittest.main()
