#!/usr/bin/env python3
import logging
import asyncio
import os
import sys
import subprocess
import time

import config
from secure_db import SecureDB
from handlers.ledger import seed_tables
from telegram.ext import ApplicationBuilder

# Feature modules
from handlers.payments     import register_payment_handlers
from handlers.export_excel import register_export_handler


# ════════════════════════════════════════════════════════════
# Bootstrap
# ════════════════════════════════════════════════════════════
def open_store() -> SecureDB:
    db = SecureDB(config.DB_PATH, config.SALT_PATH, config.ENABLE_ENCRYPTION)
    db.open(config.DB_PASSPHRASE)
    seed_tables(db)
    return db


def build_application(db: SecureDB):
    app = ApplicationBuilder().token(config.BOT_TOKEN).build()
    app.bot_data["db"] = db
    app.bot_data["unit"] = config.CURRENCY_UNIT

    register_payment_handlers(app)
    register_export_handler(app)
    return app


# ════════════════════════════════════════════════════════════
# Main bot runner
# ════════════════════════════════════════════════════════════
async def run_bot():
    logging.basicConfig(
        format="%(asctime)s — %(name)s — %(levelname)s — %(message)s",
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    )
    db = open_store()
    app = build_application(db)

    await app.initialize()
    await app.start()
    await app.updater.start_polling()
    logging.info("⚡ Electric fee bot is polling")
    try:
        await asyncio.Event().wait()
    finally:
        await app.updater.stop()
        await app.stop()
        await app.shutdown()
        db.close()

# ════════════════════════════════════════════════════════════
# Simple self-supervisor, restarts on crash
# ════════════════════════════════════════════════════════════
def main_supervisor():
    while True:
        logging.warning("🔄 Starting bot process…")
        exit_code = subprocess.call([sys.executable, os.path.abspath(__file__), "child"])
        if exit_code == 0:
            logging.warning("✅ Bot exited cleanly.")
            break
        logging.warning(f"⚠️ Bot crashed (exit {exit_code}) — restarting in 5 s …")
        time.sleep(5)


def main():
    if len(sys.argv) > 1 and sys.argv[1] == "child":
        asyncio.run(run_bot())
    else:
        main_supervisor()


if __name__ == "__main__":
    main()
