#!/usr/bin/env python3
"""
💰 Finance Tracker - single-user Telegram expense bot
=====================================================
Forward a payment SMS or type an amount, pick a category, and the row
lands in a Google Sheet. /summary totals the current month by category.

Stack: python-telegram-bot + Google Sheets (gspread, google-auth)
"""

import asyncio
from datetime import datetime
from functools import wraps

from telegram import BotCommand, Update
from telegram.ext import (
    Application, CallbackQueryHandler, CommandHandler,
    ContextTypes, MessageHandler, filters,
)

import keyboards
from config import load_settings
from conversation import ConversationStore, begin_entry, category_selected, text_received
from sheets_auth import TokenCache
from sheets_sync import Ledger

BOT_COMMANDS = [
    BotCommand("add", "Add expense"),
    BotCommand("remove", "Remove/Refund expense"),
    BotCommand("summary", "View monthly summary"),
    BotCommand("cancel", "Discard the current entry"),
]


def auth_check(reject_message=None):
    """Only the configured user gets through; others are ignored or told off."""
    def decorator(func):
        @wraps(func)
        async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE):
            user = update.effective_user
            if user is None or user.id != context.bot_data["allowed_user_id"]:
                if reject_message and update.message:
                    await update.message.reply_text(reject_message)
                return
            return await func(update, context)
        return wrapper
    return decorator


# ── Commands ──

@auth_check(reject_message="❌ Unauthorized")
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await update.message.reply_text(keyboards.WELCOME_TEXT)


@auth_check()
async def cmd_add(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await begin_entry(update, context, is_reversal=False)


@auth_check()
async def cmd_remove(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await begin_entry(update, context, is_reversal=True)


@auth_check()
async def cmd_summary(update: Update, context: ContextTypes.DEFAULT_TYPE):
    ledger = context.bot_data["ledger"]
    summary = await asyncio.to_thread(ledger.get_monthly_summary)
    if summary is None:
        await update.message.reply_text("❌ Error")
        return
    clock = context.bot_data.get("clock", datetime.now)
    await update.message.reply_text(keyboards.format_summary(summary, clock()))


@auth_check()
async def cmd_cancel(update: Update, context: ContextTypes.DEFAULT_TYPE):
    if context.bot_data["store"].clear(update.effective_user.id):
        await update.message.reply_text("❌ Cancelled")
    else:
        await update.message.reply_text("Nothing to cancel")


# ── Free text and buttons ──

@auth_check()
async def on_text(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await text_received(update, context)


@auth_check()
async def on_category(update: Update, context: ContextTypes.DEFAULT_TYPE):
    await category_selected(update, context)


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE):
    print(f"❌ Handler error: {context.error!r}")


async def post_init(app: Application):
    await app.bot.set_my_commands(BOT_COMMANDS)
    await asyncio.to_thread(app.bot_data["ledger"].setup_sheet_headers)


# ══════════════════════════════════════════════
# MAIN
# ══════════════════════════════════════════════

def build_application(settings, ledger=None):
    if ledger is None:
        tokens = TokenCache(settings.credential_paths, settings.credentials_json)
        ledger = Ledger(settings.sheet_id, tokens, settings.sheet_name)

    app = Application.builder().token(settings.bot_token).post_init(post_init).build()
    app.bot_data.update(
        allowed_user_id=settings.allowed_user_id,
        categories=list(settings.categories),
        store=ConversationStore(ttl=settings.state_ttl),
        ledger=ledger,
    )

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("add", cmd_add))
    app.add_handler(CommandHandler("remove", cmd_remove))
    app.add_handler(CommandHandler("summary", cmd_summary))
    app.add_handler(CommandHandler("cancel", cmd_cancel))
    app.add_handler(CallbackQueryHandler(on_category, pattern=rf"^{keyboards.CATEGORY_PREFIX}\d+$"))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, on_text))
    app.add_error_handler(on_error)
    return app


def main():
    try:
        settings = load_settings()
    except ValueError as e:
        print(f"❌ ERROR: {e}")
        return
    if not settings.bot_token:
        print("❌ ERROR: Set TELEGRAM_BOT_TOKEN environment variable")
        return
    if not settings.sheet_id:
        print("📊 GOOGLE_SHEET_ID not configured, ledger calls will fail")

    app = build_application(settings)
    print("🤖 Bot running...")
    app.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
