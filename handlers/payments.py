# ======================================================================
#   ELECTRIC FEE PAYMENTS – RECORD / LIST / DELETE, SCOPED PER CHAT+USER
# ======================================================================

import logging
from typing import NamedTuple

from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

import config
from handlers.errors import InvalidRange, LedgerError, NothingToDelete, OutOfRange
from handlers.ledger import Scope, add_payment, get_payments, remove_payments, total_amount
from handlers.utils import fmt_money, fmt_timestamp, get_args, get_scope, require_store
from handlers.validation import MIN_AMOUNT, parse_range, validate_amount

logger = logging.getLogger(__name__)

SEPARATOR = "══════════════"


class Reply(NamedTuple):
    ok: bool
    text: str


# ───────────────────────────────────────────────────────────────
#  Commands: (db, scope, args, unit) -> reply text
# ───────────────────────────────────────────────────────────────

def show_usage(db, scope: Scope, args: list[str], unit: str) -> str:
    return (
        "⚡ 费用管理系统使用举例 ⚡\n"
        "────────────────\n"
        "1️⃣ 记录缴费：交电费 200   或 /record 200\n"
        "2️⃣ 查看记录：统计电费     或 /list\n"
        "3️⃣ 删除记录：删除交费 1   或 /delete 1-3\n"
        "4️⃣ 导出表格：导出电费     或 /export\n"
        f"当前货币单位：{unit}\n"
        f"最小金额：{fmt_money(MIN_AMOUNT, unit)}，最多两位小数\n"
        "────────────────"
    )


def record_payment(db, scope: Scope, args: list[str], unit: str) -> str:
    amount = validate_amount(args[0] if args else None)
    add_payment(db, scope, amount)
    return f"✅ 成功记录电费 {fmt_money(amount, unit)}"


def list_payments(db, scope: Scope, args: list[str], unit: str) -> str:
    rows = get_payments(db, scope)
    if not rows:
        return "📭 你尚未缴纳过电费"

    lines = [f"📆 你的缴费记录（{unit}）", SEPARATOR]
    for idx, r in enumerate(rows, start=1):
        lines += [
            f"🔢 记录 {idx}",
            f"⏰ {fmt_timestamp(r['timestamp'])}",
            f"💰 {fmt_money(r['amount'], unit)}",
            SEPARATOR,
        ]
    lines.append(f"💳 累计总额：{fmt_money(total_amount(rows), unit)}")
    return "\n".join(lines)


def _deletable(db, scope: Scope) -> list:
    # ordinals are resolved against the store as it is now, not as last listed
    rows = get_payments(db, scope)
    if not rows:
        raise NothingToDelete()
    return rows


def _delete_rows(db, rows: list, ordinals, unit: str) -> str:
    requested = ordinals if isinstance(ordinals, range) else list(ordinals)
    count = len(rows)
    if any(i < 1 or i > count for i in requested):
        raise OutOfRange(count)

    targets = [(i, rows[i - 1]) for i in sorted(set(requested))]
    if not targets:
        raise NothingToDelete()

    remove_payments(db, [r.doc_id for _, r in targets])
    return "\n".join(
        [f"🗑️ 已删除 {len(targets)} 条记录："]
        + [f"▸ 序号 {i}（{fmt_money(r['amount'], unit)}）" for i, r in targets]
    )


def delete_ordinals(db, scope: Scope, ordinals, unit: str) -> str:
    """
    Delete by 1-based ordinal. Either every ordinal is valid and all of
    them go in one store write, or nothing is removed.
    """
    return _delete_rows(db, _deletable(db, scope), ordinals, unit)


def delete_payments(db, scope: Scope, args: list[str], unit: str) -> str:
    token = args[0] if args else None
    if not token:
        raise InvalidRange(token)
    # an empty history wins over a malformed token
    rows = _deletable(db, scope)
    return _delete_rows(db, rows, parse_range(token), unit)


COMMANDS = {
    "help":   show_usage,
    "record": record_payment,
    "list":   list_payments,
    "delete": delete_payments,
}


def dispatch(db, name: str, scope: Scope, args=(), unit: str | None = None) -> Reply:
    handler = COMMANDS[name]
    unit = config.CURRENCY_UNIT if unit is None else unit
    try:
        return Reply(True, handler(db, scope, list(args), unit))
    except LedgerError as e:
        logger.info("%s rejected for %s: %s", name, scope, type(e).__name__)
        return Reply(False, e.render(unit))


# ───────────────────────────────────────────────────────────────
#  Telegram adapters
# ───────────────────────────────────────────────────────────────

async def _run(name: str, update: Update, context: ContextTypes.DEFAULT_TYPE):
    reply = dispatch(
        context.bot_data["db"],
        name,
        get_scope(update),
        get_args(update, context),
        context.bot_data.get("unit", config.CURRENCY_UNIT),
    )
    await update.message.reply_text(reply.text)
    return reply


@require_store
async def fee_menu(update: Update, context: ContextTypes.DEFAULT_TYPE):
    return await _run("help", update, context)


@require_store
async def record_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    logger.info("Record payment request from %s", get_scope(update))
    return await _run("record", update, context)


@require_store
async def list_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    return await _run("list", update, context)


@require_store
async def delete_command(update: Update, context: ContextTypes.DEFAULT_TYPE):
    logger.info("Delete request from %s", get_scope(update))
    return await _run("delete", update, context)


def register_payment_handlers(app: Application):
    new_only = filters.UpdateType.MESSAGE
    app.add_handler(CommandHandler(["fee", "start"], fee_menu, filters=new_only))
    app.add_handler(CommandHandler(["record", "pay"], record_command, filters=new_only))
    app.add_handler(CommandHandler(["list", "stats"], list_command, filters=new_only))
    app.add_handler(CommandHandler(["delete", "del"], delete_command, filters=new_only))

    # Chinese text triggers
    app.add_handler(MessageHandler(new_only & filters.Regex(r"^电费$"), fee_menu))
    app.add_handler(MessageHandler(new_only & filters.Regex(r"^(交电费|缴费)(\s|$)"), record_command))
    app.add_handler(MessageHandler(new_only & filters.Regex(r"^(统计电费|查电费)$"), list_command))
    app.add_handler(MessageHandler(new_only & filters.Regex(r"^(删除交费|删除)(\s|$)"), delete_command))
