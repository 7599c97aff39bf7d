import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from telegram.ext import Application, ApplicationBuilder

from handlers.export_excel import build_workbook, export_excel, register_export_handler
from handlers.ledger import Scope, add_payment, get_payments
from handlers.payments import delete_command, list_command, record_command, register_payment_handlers
from handlers.utils import fmt_money, fmt_timestamp, get_args


def _update(text, chat_id=1, user_id=2):
    message = MagicMock()
    message.text = text
    message.reply_text = AsyncMock()
    message.reply_document = AsyncMock()
    return SimpleNamespace(
        message=message,
        effective_chat=SimpleNamespace(id=chat_id),
        effective_user=SimpleNamespace(id=user_id),
    )


def _context(db, args=None):
    return SimpleNamespace(args=args, bot_data={"db": db, "unit": "元"})


def _replied(update):
    return update.message.reply_text.await_args.args[0]


def test_slash_command_uses_context_args(db):
    update = _update("/record 88.8")
    asyncio.run(record_command(update, _context(db, ["88.8"])))
    assert _replied(update) == "✅ 成功记录电费 88.80 元"


def test_text_trigger_splits_message(db):
    update = _update("交电费 12")
    asyncio.run(record_command(update, _context(db)))
    assert _replied(update) == "✅ 成功记录电费 12.00 元"

    rows = get_payments(db, Scope("1", "2"))
    assert [r["amount"] for r in rows] == [12.0]
    assert rows[0]["channel_id"] == "1" and rows[0]["user_id"] == "2"


def test_list_and_delete_through_telegram(db):
    for amount in ("100", "200.5"):
        asyncio.run(record_command(_update(f"缴费 {amount}"), _context(db)))

    listing = _update("统计电费")
    asyncio.run(list_command(listing, _context(db)))
    assert _replied(listing).endswith("💳 累计总额：300.50 元")

    deletion = _update("删除交费 1")
    asyncio.run(delete_command(deletion, _context(db)))
    assert _replied(deletion) == "🗑️ 已删除 1 条记录：\n▸ 序号 1（100.00 元）"


def test_closed_store_short_circuits(tmp_path):
    from secure_db import SecureDB
    closed = SecureDB(str(tmp_path / "db.json"), encrypted=False)
    update = _update("统计电费")
    asyncio.run(list_command(update, _context(closed)))
    assert _replied(update) == "🔒 Database is not open."


def test_missing_store_short_circuits():
    update = _update("统计电费")
    asyncio.run(list_command(update, SimpleNamespace(args=None, bot_data={})))
    assert _replied(update) == "🔒 Database is not open."


def test_get_args():
    assert get_args(_update("删除 2-4"), SimpleNamespace(args=None)) == ["2-4"]
    assert get_args(_update("/del 3"), SimpleNamespace(args=["3"])) == ["3"]
    assert get_args(_update("统计电费"), SimpleNamespace(args=None)) == []


def test_formatters():
    assert fmt_money(1, "元") == "1.00 元"
    assert fmt_money(1234.5, "") == "1234.50"
    assert fmt_timestamp("2025-01-02T05:45:00+00:00", 8) == "2025年01月02日 13:45"
    assert fmt_timestamp("2025-12-31T20:00:00", 8) == "2026年01月01日 04:00"
    assert fmt_timestamp("garbage") == "garbage"


def test_export_workbook(db, scope):
    assert build_workbook(db, scope, "元") is None
    add_payment(db, scope, 10.0)
    add_payment(db, scope, 5.25)
    bio = build_workbook(db, scope, "元")
    assert bio.getvalue()[:2] == b"PK"


def test_export_command(db):
    empty = _update("导出电费")
    asyncio.run(export_excel(empty, _context(db)))
    assert _replied(empty) == "📭 你尚未缴纳过电费"

    asyncio.run(record_command(_update("交电费 9.99"), _context(db)))
    update = _update("导出电费")
    asyncio.run(export_excel(update, _context(db)))
    kwargs = update.message.reply_document.await_args.kwargs
    assert kwargs["filename"] == "electric_fee.xlsx"
    assert kwargs["document"].getvalue()[:2] == b"PK"


def test_handlers_register():
    app = ApplicationBuilder().token("123:ABC").build()
    assert isinstance(app, Application)
    register_payment_handlers(app)
    register_export_handler(app)
    assert len(app.handlers[0]) == 10
