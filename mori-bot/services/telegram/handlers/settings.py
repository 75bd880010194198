from aiogram import types, Dispatcher, F
from aiogram.filters import Command, CommandObject
import logging

from config.settings import config
from services.price_alerts.alert_types import TargetSide
from services.price_alerts.subscriptions import (
    InvalidConfigInput,
    is_clear_target,
    subscription_manager,
)
from services.price_source.service import price_source
from services.telegram.formatter import AlertFormatter, format_target
from services.telegram.keyboards import Keyboards

logger = logging.getLogger(__name__)


async def cmd_settings(message: types.Message):
    """Обработчик команды /settings"""
    settings = await subscription_manager.register(message.from_user.id)
    await message.answer(AlertFormatter.format_settings(settings), parse_mode="HTML")


async def cmd_alerts(message: types.Message, command: CommandObject):
    """Обработчик /alerts, /alerts on, /alerts off"""
    user_id = message.from_user.id
    action = (command.args or "").strip().lower()

    if action not in ("on", "off"):
        settings = await subscription_manager.register(user_id)
        await message.answer(AlertFormatter.format_alerts_status(settings), parse_mode="HTML")
        return

    await subscription_manager.set_alerts_enabled(user_id, action == "on")

    if action == "on":
        await message.answer("🔔 Уведомления включены! Вы будете получать сигналы при изменении цены.")
    else:
        await message.answer("🔕 Уведомления выключены. Используйте /alerts on для включения.")


async def cmd_threshold(message: types.Message, command: CommandObject):
    """Обработчик /threshold N"""
    try:
        settings = await subscription_manager.set_change_threshold(
            message.from_user.id, command.args or ""
        )
    except InvalidConfigInput:
        await message.answer(
            f"❌ Порог должен быть от {config.MIN_CHANGE_THRESHOLD} до {config.MAX_CHANGE_THRESHOLD}%\n\n"
            "Пример: /threshold 5"
        )
        return

    await message.answer(
        f"✅ Порог уведомлений установлен: {settings.change_threshold}%\n\n"
        f"Теперь вы получите уведомление при изменении цены на {settings.change_threshold}% или больше."
    )


async def _handle_target(message: types.Message, command: CommandObject, side: TargetSide):
    user_id = message.from_user.id
    args = (command.args or "").strip()
    example = "/pmax 0.1745" if side is TargetSide.MAX else "/pmin 0.15"
    label = "Максимальная" if side is TargetSide.MAX else "Минимальная"

    if args and is_clear_target(args):
        await subscription_manager.clear_target(user_id, side)
        await message.answer(f"🚫 {label} цена отключена\n\nИспользуйте /targets для просмотра оставшихся целей.")
        return

    try:
        settings = await subscription_manager.set_target(user_id, side, args)
    except InvalidConfigInput:
        await message.answer(f"❌ Неверный формат цены.\n\nПример: {example}")
        return

    target = settings.max_target if side is TargetSide.MAX else settings.min_target
    direction = "поднимется выше" if side is TargetSide.MAX else "упадет ниже"
    await message.answer(
        f"🎯 {label} цена установлена: {format_target(target)}\n\n"
        f"💡 Вы получите уведомление, когда цена ${config.ASSET_SYMBOL} {direction} этого уровня."
    )


async def cmd_pmax(message: types.Message, command: CommandObject):
    """Обработчик /pmax"""
    await _handle_target(message, command, TargetSide.MAX)


async def cmd_pmin(message: types.Message, command: CommandObject):
    """Обработчик /pmin"""
    await _handle_target(message, command, TargetSide.MIN)


async def _targets_text(user_id: int) -> str:
    settings = await subscription_manager.register(user_id)

    # Для сравнения берем свежую цену
    observation = await price_source.fetch()

    return AlertFormatter.format_targets(settings, observation)


async def cmd_targets(message: types.Message):
    """Обработчик /targets"""
    await message.answer(await _targets_text(message.from_user.id), parse_mode="HTML")


async def callback_settings(callback: types.CallbackQuery):
    settings = await subscription_manager.register(callback.from_user.id)
    await callback.message.edit_text(
        AlertFormatter.format_settings(settings),
        reply_markup=Keyboards.back_button(),
        parse_mode="HTML"
    )
    await callback.answer()


async def callback_targets(callback: types.CallbackQuery):
    await callback.answer()
    await callback.message.edit_text(
        await _targets_text(callback.from_user.id),
        reply_markup=Keyboards.back_button(),
        parse_mode="HTML"
    )


async def callback_toggle_alerts(callback: types.CallbackQuery):
    """Включение/выключение уведомлений из меню"""
    enabled = callback.data == "alerts_on"
    settings = await subscription_manager.set_alerts_enabled(callback.from_user.id, enabled)

    await callback.message.edit_reply_markup(reply_markup=Keyboards.main_menu(settings.alerts_enabled))
    await callback.answer("🔔 Уведомления включены" if enabled else "🔕 Уведомления выключены")


async def callback_threshold_menu(callback: types.CallbackQuery):
    settings = await subscription_manager.register(callback.from_user.id)
    await callback.message.edit_text(
        f"📊 <b>Порог уведомлений</b>\n\nТекущий порог: {settings.change_threshold}%\n"
        "Выберите новый или используйте /threshold [число]:",
        reply_markup=Keyboards.threshold_presets(),
        parse_mode="HTML"
    )
    await callback.answer()


async def callback_threshold_preset(callback: types.CallbackQuery):
    """Выбор порога из пресетов"""
    try:
        settings = await subscription_manager.set_change_threshold(
            callback.from_user.id, callback.data.split("_")[1]
        )
    except InvalidConfigInput:
        await callback.answer("❌ Недопустимый порог", show_alert=True)
        return

    await callback.message.edit_text(
        f"✅ Порог уведомлений установлен: {settings.change_threshold}%",
        reply_markup=Keyboards.main_menu(settings.alerts_enabled),
        parse_mode="HTML"
    )
    await callback.answer()


def register_settings_handlers(dp: Dispatcher):
    """Регистрация обработчиков настроек"""
    dp.message.register(cmd_settings, Command("settings"))
    dp.message.register(cmd_alerts, Command("alerts"))
    dp.message.register(cmd_threshold, Command("threshold"))
    dp.message.register(cmd_pmax, Command("pmax"))
    dp.message.register(cmd_pmin, Command("pmin"))
    dp.message.register(cmd_targets, Command("targets"))

    dp.callback_query.register(callback_settings, F.data == "settings")
    dp.callback_query.register(callback_targets, F.data == "targets")
    dp.callback_query.register(callback_toggle_alerts, F.data.in_({"alerts_on", "alerts_off"}))
    dp.callback_query.register(callback_threshold_menu, F.data == "threshold_menu")
    dp.callback_query.register(callback_threshold_preset, F.data.startswith("threshold_"))
