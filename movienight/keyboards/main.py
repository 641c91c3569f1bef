# movienight/keyboards/main.py
from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

BTN_STATUS = "📅 This week"
BTN_VOTE = "🗳 Vote"
BTN_MY_NOMINATION = "🍿 My nomination"
BTN_HISTORY = "📜 History"


def main_menu_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=BTN_STATUS), KeyboardButton(text=BTN_VOTE)],
            [KeyboardButton(text=BTN_MY_NOMINATION), KeyboardButton(text=BTN_HISTORY)],
        ],
        resize_keyboard=True,
        input_field_placeholder="/nominate <movie title>",
        selective=False,
        one_time_keyboard=False,
    )
