# config.py
import os

# Your Telegram bot token
BOT_TOKEN         = os.environ.get("BOT_TOKEN", "<YOUR_BOT_TOKEN_HERE>")

# Path to the TinyDB file and the KDF salt used when encryption is on
DB_PATH           = os.environ.get("ELECTRIC_FEE_DB", "data/db.json")
SALT_PATH         = "data/kdf_salt.bin"

# Toggle DB encryption (False in test, True in production)
ENABLE_ENCRYPTION = False
DB_PASSPHRASE     = os.environ.get("ELECTRIC_FEE_PASSPHRASE", "")

# Label shown after every amount in replies
CURRENCY_UNIT     = "元"

# Timestamps are stored in UTC and shown at this offset (UTC+8)
DISPLAY_UTC_OFFSET_HOURS = 8

LOG_LEVEL         = "INFO"
