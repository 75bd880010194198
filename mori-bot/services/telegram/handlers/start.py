from aiogram import types, Dispatcher, F
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
import logging

from config.settings import config
from services.price_alerts.subscriptions import subscription_manager
from services.price_source.service import price_source
from services.telegram.formatter import AlertFormatter
from services.telegram.keyboards import Keyboards

logger = logging.getLogger(__name__)


HELP_TEXT = (
    f"🆘 <b>Помощь по ${config.ASSET_SYMBOL} Bot</b>\n\n"
    "📋 <b>Основные команды:</b>\n"
    "• /start - запуск бота\n"
    f"• /price - текущая цена ${config.ASSET_SYMBOL}\n"
    "• /settings - просмотр всех настроек\n"
    "• /targets - ваши ценовые цели\n"
    "• /alerts - управление уведомлениями\n"
    "• /help - эта справка\n\n"
    "🔔 <b>Управление уведомлениями:</b>\n"
    "• /alerts on - включить уведомления\n"
    "• /alerts off - выключить уведомления\n\n"
    "🎯 <b>Ценовые цели:</b>\n"
    f"• /threshold [число] - порог уведомлений ({config.MIN_CHANGE_THRESHOLD}-{config.MAX_CHANGE_THRESHOLD}%)\n"
    "• /pmax [цена] - уведомление когда цена выше (off - отключить)\n"
    "• /pmin [цена] - уведомление когда цена ниже (off - отключить)"
)


async def cmd_start(message: types.Message, state: FSMContext):
    """Обработчик команды /start"""
    await state.clear()

    settings = await subscription_manager.register(message.from_user.id)

    welcome_text = (
        f"🤖 <b>Добро пожаловать в ${config.ASSET_SYMBOL} Bot!</b>\n\n"
        f"Я буду отслеживать цену ${config.ASSET_SYMBOL} и отправлять вам сигналы "
        "при значительных изменениях.\n\n"
        "📋 <b>Основные команды:</b>\n"
        f"• /price - Текущая цена ${config.ASSET_SYMBOL}\n"
        "• /settings - Настройки уведомлений\n"
        "• /targets - Ваши ценовые цели\n"
        "• /alerts - Управление уведомлениями\n"
        "• /help - Подробная помощь"
    )

    await message.answer(
        welcome_text,
        reply_markup=Keyboards.main_menu(settings.alerts_enabled),
        parse_mode="HTML"
    )


async def cmd_help(message: types.Message):
    """Обработчик команды /help"""
    await message.answer(HELP_TEXT, reply_markup=Keyboards.back_button(), parse_mode="HTML")


async def cmd_price(message: types.Message):
    """Обработчик команды /price - запрос цены в реальном времени"""
    await message.answer("⏳ Получаю актуальную цену...")
    await message.answer(await _price_text(), parse_mode="HTML")


async def _price_text() -> str:
    observation = await price_source.fetch()
    if observation is None:
        return "❌ Не удалось получить данные о цене. Попробуйте позже."
    return AlertFormatter.format_price_info(observation)


async def callback_main_menu(callback: types.CallbackQuery):
    """Возврат в главное меню"""
    settings = await subscription_manager.register(callback.from_user.id)

    await callback.message.edit_text(
        "🏠 <b>Главное меню</b>\n\nВыберите, что вас интересует:",
        reply_markup=Keyboards.main_menu(settings.alerts_enabled),
        parse_mode="HTML"
    )
    await callback.answer()


async def callback_help(callback: types.CallbackQuery):
    """Показ справки через callback"""
    await callback.message.edit_text(HELP_TEXT, reply_markup=Keyboards.back_button(), parse_mode="HTML")
    await callback.answer()


async def callback_price(callback: types.CallbackQuery):
    """Цена через callback"""
    await callback.answer("⏳ Получаю цену...")
    await callback.message.edit_text(
        await _price_text(),
        reply_markup=Keyboards.back_button(),
        parse_mode="HTML"
    )


def register_start_handlers(dp: Dispatcher):
    """Регистрация обработчиков старта"""
    # Команды
    dp.message.register(cmd_start, CommandStart())
    dp.message.register(cmd_help, Command("help"))
    dp.message.register(cmd_price, Command("price"))

    # Callback-и
    dp.callback_query.register(callback_main_menu, F.data == "main_menu")
    dp.callback_query.register(callback_help, F.data == "help")
    dp.callback_query.register(callback_price, F.data == "price")
