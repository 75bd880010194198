# tests/test_evaluator.py

"""Тесты правил оценки алертов подписчика."""

import unittest
from dataclasses import replace
from decimal import Decimal

from cache.memory import AlertSettings
from models.price import PriceObservation
from services.price_alerts.alert_types import ChangeSignal, TargetHit, TargetSide
from services.price_alerts.evaluator import change_percent, evaluate

USER_ID = 42


def observe(price: str) -> PriceObservation:
    return PriceObservation(price=Decimal(price))


class TestChangeSignal(unittest.TestCase):
    """Сигнал изменения цены между опросами."""

    def test_six_percent_rise_over_five_percent_threshold(self) -> None:
        result = evaluate(USER_ID, AlertSettings(change_threshold=5), Decimal("1.00"), observe("1.06"))

        self.assertEqual(len(result.events), 1)
        event = result.events[0]
        self.assertIsInstance(event, ChangeSignal)
        self.assertEqual(event.change_percent, Decimal("6.0"))
        self.assertEqual(event.user_id, USER_ID)

    def test_change_exactly_at_threshold_fires(self) -> None:
        result = evaluate(USER_ID, AlertSettings(change_threshold=5), Decimal("1.00"), observe("0.95"))

        self.assertEqual(len(result.events), 1)
        self.assertEqual(result.events[0].change_percent, Decimal("-5"))

    def test_change_below_threshold_is_silent(self) -> None:
        result = evaluate(USER_ID, AlertSettings(change_threshold=5), Decimal("1.00"), observe("1.0499"))

        self.assertEqual(result.events, [])

    def test_threshold_grid(self) -> None:
        """Сигнал есть тогда и только тогда, когда |изменение| >= порога."""
        last = Decimal("2.00")
        for threshold in (1, 5, 10, 50, 100):
            for price in ("0.50", "1.00", "1.90", "1.98", "2.00", "2.02", "2.10", "2.20", "3.00", "4.00"):
                settings = AlertSettings(change_threshold=threshold)
                result = evaluate(USER_ID, settings, last, observe(price))
                expected = abs((Decimal(price) - last) / last * 100) >= threshold
                self.assertEqual(bool(result.events), expected, f"threshold={threshold} price={price}")

    def test_no_signal_without_last_price(self) -> None:
        result = evaluate(USER_ID, AlertSettings(change_threshold=1), None, observe("100"))

        self.assertEqual(result.events, [])

    def test_no_signal_when_last_price_is_zero(self) -> None:
        result = evaluate(USER_ID, AlertSettings(change_threshold=1), Decimal(0), observe("1"))

        self.assertEqual(result.events, [])
        self.assertIsNone(change_percent(Decimal(0), Decimal(1)))


class TestMaxTarget(unittest.TestCase):
    """Максимальная цель с гистерезисом 5%."""

    def test_hit_at_target_then_hysteresis_band(self) -> None:
        settings = AlertSettings(change_threshold=100, max_target=Decimal("0.20"))

        # Цена достигла цели
        first = evaluate(USER_ID, settings, None, observe("0.20"))
        self.assertEqual(len(first.events), 1)
        hit = first.events[0]
        self.assertIsInstance(hit, TargetHit)
        self.assertIs(hit.side, TargetSide.MAX)
        self.assertEqual(hit.target, Decimal("0.20"))
        self.assertTrue(first.settings.max_triggered)

        # 0.19 не ниже 0.20 * 0.95 - флаг остается
        second = evaluate(USER_ID, first.settings, Decimal("0.20"), observe("0.19"))
        self.assertEqual(second.events, [])
        self.assertTrue(second.settings.max_triggered)

        # 0.18 - флаг сбрасывается
        third = evaluate(USER_ID, second.settings, Decimal("0.19"), observe("0.18"))
        self.assertEqual(third.events, [])
        self.assertFalse(third.settings.max_triggered)

    def test_fires_once_per_crossing(self) -> None:
        settings = AlertSettings(change_threshold=100, max_target=Decimal("10"))
        fired = []
        for price in ("9", "10", "11", "12", "10", "9.6", "11", "9.4", "10.5"):
            result = evaluate(USER_ID, settings, None, observe(price))
            fired.append(bool(result.events))
            settings = result.settings

        self.assertEqual(fired, [False, True, False, False, False, False, False, False, True])

    def test_reset_never_fires_in_trigger_cycle(self) -> None:
        settings = AlertSettings(change_threshold=100, max_target=Decimal("1"))
        result = evaluate(USER_ID, settings, None, observe("5"))

        self.assertTrue(result.settings.max_triggered)

    def test_unset_target_never_fires(self) -> None:
        result = evaluate(USER_ID, AlertSettings(change_threshold=100), None, observe("1000000"))

        self.assertEqual(result.events, [])
        self.assertFalse(result.settings.max_triggered)


class TestMinTarget(unittest.TestCase):
    """Минимальная цель с гистерезисом 5%."""

    def test_hit_and_reset_above_band(self) -> None:
        settings = AlertSettings(change_threshold=100, min_target=Decimal("0.10"))

        first = evaluate(USER_ID, settings, None, observe("0.10"))
        self.assertEqual(len(first.events), 1)
        self.assertIs(first.events[0].side, TargetSide.MIN)
        self.assertTrue(first.settings.min_triggered)

        # 0.105 == 0.10 * 1.05, не выше - флаг остается
        second = evaluate(USER_ID, first.settings, None, observe("0.105"))
        self.assertTrue(second.settings.min_triggered)

        third = evaluate(USER_ID, second.settings, None, observe("0.106"))
        self.assertFalse(third.settings.min_triggered)

        # Повторное пересечение вниз снова срабатывает
        fourth = evaluate(USER_ID, third.settings, None, observe("0.09"))
        self.assertEqual(len(fourth.events), 1)

    def test_no_repeat_while_latched(self) -> None:
        settings = AlertSettings(change_threshold=100, min_target=Decimal("0.10"), min_triggered=True)
        result = evaluate(USER_ID, settings, None, observe("0.05"))

        self.assertEqual(result.events, [])
        self.assertTrue(result.settings.min_triggered)


class TestCombinedRules(unittest.TestCase):
    """Независимость правил и выключатель уведомлений."""

    def test_max_crossing_and_change_signal_together(self) -> None:
        settings = AlertSettings(change_threshold=5, max_target=Decimal("1.05"))
        result = evaluate(USER_ID, settings, Decimal("1.00"), observe("1.10"))

        kinds = [type(event) for event in result.events]
        self.assertEqual(kinds, [ChangeSignal, TargetHit])

    def test_disabled_alerts_suppress_everything(self) -> None:
        settings = AlertSettings(
            alerts_enabled=False,
            change_threshold=1,
            max_target=Decimal("1"),
            max_triggered=True,
            min_target=Decimal("5"),
            min_triggered=False,
        )
        result = evaluate(USER_ID, settings, Decimal("2"), observe("0.5"))

        self.assertEqual(result.events, [])
        self.assertEqual(result.settings, settings)

    def test_evaluate_is_pure(self) -> None:
        settings = AlertSettings(change_threshold=5, max_target=Decimal("1.05"))
        original = replace(settings)
        observation = observe("1.10")

        first = evaluate(USER_ID, settings, Decimal("1.00"), observation)
        second = evaluate(USER_ID, settings, Decimal("1.00"), observation)

        self.assertEqual(first.events, second.events)
        self.assertEqual(first.settings, second.settings)
        self.assertEqual(settings, original)


if __name__ == "__main__":
    unittest.main()
