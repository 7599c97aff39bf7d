# handlers/utils.py

from datetime import datetime, timedelta, timezone
from functools import wraps

from telegram import Update
from telegram.ext import ContextTypes

import config
from handlers.ledger import Scope


# ───────────────────────────────────────────────────────────────
#  Formatting helpers – money  &  date
# ───────────────────────────────────────────────────────────────
def fmt_money(amount: float, unit: str | None = None) -> str:
    """200.5, '元' → '200.50 元'"""
    unit = config.CURRENCY_UNIT if unit is None else unit
    return f"{amount:.2f} {unit}".rstrip()


def fmt_timestamp(iso: str, offset_hours: int | None = None) -> str:
    """
    '2025-01-02T05:45:00+00:00' → '2025年01月02日 13:45' at UTC+8.
    If parsing fails, return the original string unchanged.
    """
    if offset_hours is None:
        offset_hours = config.DISPLAY_UTC_OFFSET_HOURS
    try:
        dt = datetime.fromisoformat(iso)
    except (TypeError, ValueError):
        return iso
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    local = dt.astimezone(timezone(timedelta(hours=offset_hours)))
    return local.strftime("%Y年%m月%d日 %H:%M")


# ───────────────────────────────────────────────────────────────
#  Telegram glue
# ───────────────────────────────────────────────────────────────
def get_scope(update: Update) -> Scope:
    return Scope(str(update.effective_chat.id), str(update.effective_user.id))


def get_args(update: Update, context: ContextTypes.DEFAULT_TYPE) -> list[str]:
    """Slash commands carry context.args; text triggers are split by hand."""
    if context.args is not None:
        return list(context.args)
    text = (update.message.text or "") if update.message else ""
    return text.split()[1:]


def require_store(func):
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE):
        db = context.bot_data.get("db")
        try:
            if db is None:
                raise RuntimeError("🔒 Database is not open.")
            db.ensure_open()
        except RuntimeError as e:
            await update.message.reply_text(str(e))
            return None
        return await func(update, context)
    return wrapper
