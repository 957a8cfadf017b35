"""
Two-step entry dialogue: amount first, then a category button.

Each user has at most one in-flight entry, held in memory by ConversationStore.
"""

import asyncio
import enum
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from telegram import Update
from telegram.ext import ContextTypes

import keyboards
from amounts import InvalidAmountError, parse_amount, parse_manual_amount


class Awaiting(enum.Enum):
    NONE = "none"
    AMOUNT = "amount"
    CATEGORY = "category"


@dataclass
class Conversation:
    awaiting: Awaiting = Awaiting.NONE
    amount: Optional[Decimal] = None
    is_reversal: bool = False
    touched_at: float = 0.0


class ConversationStore:
    """Per-user entries; anything untouched for ``ttl`` seconds is dropped."""

    def __init__(self, ttl=86400, clock=time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries = {}

    def __len__(self):
        return len(self._entries)

    def _expired(self, entry, now):
        return bool(self.ttl) and now - entry.touched_at >= self.ttl

    def get(self, user_id):
        entry = self._entries.get(user_id)
        if entry is not None and self._expired(entry, self._clock()):
            del self._entries[user_id]
            return None
        return entry

    def set(self, user_id, entry):
        now = self._clock()
        entry.touched_at = now
        for uid in [uid for uid, e in self._entries.items() if self._expired(e, now)]:
            del self._entries[uid]
        self._entries[user_id] = entry
        return entry

    def clear(self, user_id):
        return self._entries.pop(user_id, None) is not None


# ── Dialogue steps ──

async def begin_entry(update: Update, context: ContextTypes.DEFAULT_TYPE, is_reversal=False):
    """Start waiting for an amount (``/add`` or ``/remove``)."""
    store = context.bot_data["store"]
    store.set(update.effective_user.id, Conversation(awaiting=Awaiting.AMOUNT, is_reversal=is_reversal))
    prompt = "💸 Enter amount to remove:" if is_reversal else "💰 Enter amount:"
    await update.message.reply_text(prompt)


async def text_received(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Plain text: a typed amount, or a forwarded payment message."""
    store = context.bot_data["store"]
    user_id = update.effective_user.id
    text = update.message.text or ""
    current = store.get(user_id)

    if current is not None and current.awaiting is Awaiting.AMOUNT:
        try:
            amount = parse_manual_amount(text)
        except InvalidAmountError:
            await update.message.reply_text("❌ Invalid amount")
            return
        store.set(user_id, Conversation(Awaiting.CATEGORY, amount, current.is_reversal))
        await update.message.reply_text(
            keyboards.amount_prompt(amount, current.is_reversal),
            reply_markup=keyboards.category_keyboard(context.bot_data["categories"]),
        )
        return

    amount = parse_amount(text)
    if amount is None:
        return
    store.set(user_id, Conversation(Awaiting.CATEGORY, amount, False))
    await update.message.reply_text(
        keyboards.detected_prompt(amount),
        reply_markup=keyboards.category_keyboard(context.bot_data["categories"]),
    )


async def category_selected(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Category button: record the held amount and clear the entry."""
    query = update.callback_query
    store = context.bot_data["store"]
    categories = context.bot_data["categories"]
    user_id = query.from_user.id

    current = store.get(user_id)
    if current is None or current.amount is None or current.awaiting is not Awaiting.CATEGORY:
        await query.answer()
        return

    index = int(query.data[len(keyboards.CATEGORY_PREFIX):])
    if not 0 <= index < len(categories):
        await query.answer("❌ Unknown category")
        return
    category = categories[index]

    notes = "REFUND" if current.is_reversal else ""
    ledger = context.bot_data["ledger"]
    saved = await asyncio.to_thread(
        ledger.append_transaction, current.amount, category, notes, current.is_reversal
    )
    if not saved:
        await query.answer("❌ Error")
        return

    # Row is written; clear before replying so a failed reply cannot re-append it.
    store.clear(user_id)
    await query.answer("✅ Saved!")
    await query.edit_message_text(keyboards.confirmation_text(current.amount, category, current.is_reversal))
