"""Inline keyboards and outbound message text."""

from telegram import InlineKeyboardButton, InlineKeyboardMarkup

CATEGORY_PREFIX = "cat_"

WELCOME_TEXT = (
    "👋 Welcome to Finance Tracker!\n\n"
    "1. Forward PhonePe SMS\n"
    "2. Select category\n"
    "3. Done!\n\n"
    "Commands:\n"
    "/add - Add expense\n"
    "/remove - Remove/Refund expense\n"
    "/summary - View monthly summary\n"
    "/cancel - Discard the current entry"
)


def category_keyboard(categories):
    """Two numbered buttons per row; each carries ``cat_<index>``."""
    keyboard = []
    row = []
    for index, name in enumerate(categories):
        row.append(InlineKeyboardButton(f"{index + 1}. {name}", callback_data=f"{CATEGORY_PREFIX}{index}"))
        if len(row) == 2:
            keyboard.append(row)
            row = []
    if row:
        keyboard.append(row)
    return InlineKeyboardMarkup(keyboard)


def format_amount(amount):
    return f"₹{amount}"


def entry_emoji(is_reversal):
    return "💸" if is_reversal else "💰"


def amount_prompt(amount, is_reversal):
    return f"{entry_emoji(is_reversal)} {format_amount(amount)}\nSelect category:"


def detected_prompt(amount):
    return f"✅ Detected: {format_amount(amount)}\nSelect category:"


def confirmation_text(amount, category, is_reversal):
    action = "Removed" if is_reversal else "Added"
    return f"✅ {action}!\n{entry_emoji(is_reversal)} {format_amount(amount)}\n📂 {category}"


def format_summary(summary, month):
    """Render a MonthlySummary; ``month`` is any date inside the month."""
    text = f"📊 {month.strftime('%B %Y')}\n\n"
    ranked = sorted(summary.by_category.items(), key=lambda item: item[1], reverse=True)
    for category, amount in ranked:
        text += f"{category}: ₹{amount:.2f}\n"
    text += f"\n💵 Total: ₹{summary.total:.2f}"
    return text
