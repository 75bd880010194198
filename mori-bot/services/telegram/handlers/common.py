from aiogram import types, Dispatcher
import logging

logger = logging.getLogger(__name__)


async def unknown_command(message: types.Message):
    """Обработка неизвестных команд"""
    await message.answer(
        "❓ Неизвестная команда.\n"
        "Используйте /help для справки или /start для главного меню."
    )


async def unknown_callback(callback: types.CallbackQuery):
    """Обработка неизвестных callback"""
    logger.warning(f"Unknown callback: {callback.data}")
    await callback.answer("❌ Неизвестное действие", show_alert=True)


async def error_handler(event: types.ErrorEvent):
    """Глобальный обработчик ошибок"""
    logger.error(f"Update {event.update.update_id} caused error {event.exception}")

    update = event.update
    error_text = (
        "❌ Произошла ошибка при обработке запроса.\n"
        "Попробуйте позже."
    )

    try:
        if update.message:
            await update.message.answer(error_text)
        elif update.callback_query:
            await update.callback_query.answer(error_text, show_alert=True)
    except Exception as e:
        logger.error(f"Error reporting failure to user: {e}")


def register_common_handlers(dp: Dispatcher):
    """Регистрация общих обработчиков"""
    dp.errors.register(error_handler)

    # Неизвестные команды (должно быть в конце)
    dp.message.register(unknown_command)
    dp.callback_query.register(unknown_callback)
