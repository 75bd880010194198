from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from config.settings import config


class Keyboards:
    """Все клавиатуры бота"""

    @staticmethod
    def main_menu(alerts_enabled: bool = True) -> InlineKeyboardMarkup:
        """Главное меню"""
        toggle_text = "🔕 Выключить уведомления" if alerts_enabled else "🔔 Включить уведомления"
        toggle_data = "alerts_off" if alerts_enabled else "alerts_on"

        keyboard = [
            [
                InlineKeyboardButton(text="💰 Цена", callback_data="price"),
                InlineKeyboardButton(text="🎯 Цели", callback_data="targets")
            ],
            [
                InlineKeyboardButton(text="⚙️ Настройки", callback_data="settings"),
                InlineKeyboardButton(text="📊 Порог", callback_data="threshold_menu")
            ],
            [
                InlineKeyboardButton(text=toggle_text, callback_data=toggle_data)
            ],
            [
                InlineKeyboardButton(text="❓ Помощь", callback_data="help")
            ]
        ]
        return InlineKeyboardMarkup(inline_keyboard=keyboard)

    @staticmethod
    def back_button(callback_data: str = "main_menu") -> InlineKeyboardMarkup:
        """Кнопка назад"""
        return InlineKeyboardMarkup(inline_keyboard=[
            [InlineKeyboardButton(text="🔙 Назад", callback_data=callback_data)]
        ])

    @staticmethod
    def threshold_presets() -> InlineKeyboardMarkup:
        """Предустановленные пороги изменения"""
        buttons = [
            InlineKeyboardButton(text=text, callback_data=data)
            for text, data in config.get_threshold_presets_keyboard_data()
        ]
        keyboard = [buttons[i:i + 3] for i in range(0, len(buttons), 3)]
        keyboard.append([InlineKeyboardButton(text="🔙 Назад", callback_data="main_menu")])
        return InlineKeyboardMarkup(inline_keyboard=keyboard)
