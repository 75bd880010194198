# tests/test_queue.py

"""Тесты очереди исходящих сообщений."""

import unittest
from unittest.mock import AsyncMock, MagicMock

from utils.queue import MessageQueue, Priority


class TestMessageQueue(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self) -> None:
        self.bot = MagicMock()
        self.bot.send_message = AsyncMock()
        self.queue = MessageQueue(self.bot)

    async def test_alerts_sent_before_normal_messages(self) -> None:
        await self.queue.add_message(1, "hello")
        await self.queue.add_alert(2, "alert")

        await self.queue.send_next_message()
        await self.queue.send_next_message()

        chat_ids = [call.kwargs['chat_id'] for call in self.bot.send_message.await_args_list]
        self.assertEqual(chat_ids, [2, 1])
        self.assertEqual(self.queue.stats['messages_sent'], 2)
        self.assertEqual(self.queue.stats['alerts_sent'], 1)

    async def test_same_priority_keeps_fifo_order(self) -> None:
        for user_id in (3, 1, 2):
            await self.queue.add_message(user_id, "text", priority=Priority.LOW)

        while await self.queue.send_next_message():
            pass

        chat_ids = [call.kwargs['chat_id'] for call in self.bot.send_message.await_args_list]
        self.assertEqual(chat_ids, [3, 1, 2])

    async def test_failed_delivery_is_not_requeued(self) -> None:
        self.bot.send_message.side_effect = RuntimeError("Forbidden: bot was blocked by the user")
        await self.queue.add_alert(1, "alert")

        sent = await self.queue.send_next_message()

        self.assertFalse(sent)
        self.assertEqual(self.queue.stats['errors'], 1)
        self.assertEqual(self.queue.get_stats()['pending_messages'], 0)

    async def test_without_bot_nothing_is_sent(self) -> None:
        queue = MessageQueue()
        await queue.add_message(1, "text")

        self.assertFalse(await queue.send_next_message())
        self.assertEqual(queue.get_stats()['pending_messages'], 1)

    async def test_empty_queue(self) -> None:
        self.assertFalse(await self.queue.send_next_message())
        self.bot.send_message.assert_not_awaited()

    async def test_health_check_reports_error_rate(self) -> None:
        self.bot.send_message.side_effect = RuntimeError("boom")
        await self.queue.add_message(1, "text")
        await self.queue.send_next_message()

        health = await self.queue.health_check()

        self.assertFalse(health['healthy'])
        self.assertEqual(health['error_rate'], 1.0)


if __name__ == "__main__":
    unittest.main()
