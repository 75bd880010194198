# tests/test_telegram_bot.py

"""Тесты получателя событий на стороне Telegram."""

import unittest
from decimal import Decimal
from unittest.mock import AsyncMock, patch

from models.price import PriceObservation
from services.price_alerts.alert_types import ChangeSignal, TargetHit, TargetSide
from services.telegram.bot import TelegramBot


class TestNotify(unittest.IsolatedAsyncioTestCase):

    async def test_change_signal_queued_as_alert(self) -> None:
        bot = TelegramBot()
        event = ChangeSignal(user_id=42, observation=PriceObservation(price=Decimal("1.06")),
                             change_percent=Decimal("6.0"))

        with patch("services.telegram.bot.message_queue.add_alert", new_callable=AsyncMock) as add_alert:
            await bot.notify(event)

        add_alert.assert_awaited_once()
        user_id, text = add_alert.await_args.args
        self.assertEqual(user_id, 42)
        self.assertIn("6.00%", text)

    async def test_target_hit_queued_for_its_subscriber(self) -> None:
        bot = TelegramBot()
        event = TargetHit(user_id=7, observation=PriceObservation(price=Decimal("0.09")),
                          side=TargetSide.MIN, target=Decimal("0.1"))

        with patch("services.telegram.bot.message_queue.add_alert", new_callable=AsyncMock) as add_alert:
            await bot.notify(event)

        self.assertEqual(add_alert.await_args.args[0], 7)
        self.assertIn("МИНИМУМА", add_alert.await_args.args[1])

    async def test_health_check_before_start(self) -> None:
        health = await TelegramBot().health_check()

        self.assertFalse(health['healthy'])
        self.assertIn(health['mode'], ('polling', 'webhook'))


if __name__ == "__main__":
    unittest.main()
