# handlers/export_excel.py

import logging
from io import BytesIO

import pandas as pd
from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

import config
from handlers.errors import StoreFailure
from handlers.ledger import Scope, get_payments, total_amount
from handlers.utils import fmt_timestamp, get_scope, require_store

logger = logging.getLogger(__name__)


def build_workbook(db, scope: Scope, unit: str) -> BytesIO | None:
    """Render a scope's payments to an in-memory .xlsx; None when there are none."""
    rows = get_payments(db, scope)
    if not rows:
        return None

    df = pd.DataFrame(
        [
            {"序号": idx, "时间": fmt_timestamp(r["timestamp"]), f"金额（{unit}）": r["amount"]}
            for idx, r in enumerate(rows, start=1)
        ]
    )
    total = pd.DataFrame([{"序号": "合计", "时间": "", f"金额（{unit}）": total_amount(rows)}])
    df = pd.concat([df, total], ignore_index=True)

    bio = BytesIO()
    try:
        with pd.ExcelWriter(bio, engine="xlsxwriter") as writer:
            df.to_excel(writer, sheet_name="电费", index=False)
    except Exception as exc:
        logger.exception("❌ Failed to render workbook for %s", scope)
        raise StoreFailure("export") from exc
    bio.seek(0)
    return bio


@require_store
async def export_excel(update: Update, context: ContextTypes.DEFAULT_TYPE):
    scope = get_scope(update)
    unit = context.bot_data.get("unit", config.CURRENCY_UNIT)
    try:
        bio = build_workbook(context.bot_data["db"], scope, unit)
    except StoreFailure as e:
        await update.message.reply_text(e.render(unit))
        return
    if bio is None:
        await update.message.reply_text("📭 你尚未缴纳过电费")
        return
    logger.info("📤 Exporting payments for %s", scope)
    await update.message.reply_document(document=bio, filename="electric_fee.xlsx")


def register_export_handler(app: Application):
    new_only = filters.UpdateType.MESSAGE
    app.add_handler(CommandHandler("export", export_excel, filters=new_only))
    app.add_handler(MessageHandler(new_only & filters.Regex(r"^导出电费$"), export_excel))
