# handlers/ledger.py
"""
Store access for electric-fee payments.

Every read and write is scoped to one (channel_id, user_id) pair. Records are
append-only apart from deletion; ordinals are never stored and are derived
from the sort in get_payments().
"""

import logging
from datetime import datetime, timezone
from typing import NamedTuple

from tinydb import Query

from handlers.errors import StoreFailure

logger = logging.getLogger("ledger")

# ─── if the parent application hasn’t configured us, do it here ──────────
if not logger.hasHandlers():
    logger.setLevel(logging.DEBUG)
    _h = logging.StreamHandler()
    _h.setFormatter(logging.Formatter(
        "%(asctime)s — %(name)s — %(levelname)s — %(message)s"))
    logger.addHandler(_h)

PAYMENT_TABLE = "electric_payment"
SCHEMA_VERSION = 1


class Scope(NamedTuple):
    channel_id: str
    user_id: str


# ─────────────────────────────────────────────────────────────────────────
#  DB bootstrap
# ─────────────────────────────────────────────────────────────────────────
def seed_tables(db):
    """
    Record the schema version once so a fresh file is never empty.
    """
    system = db.table("system")
    if system.get(Query().version.exists()):
        logger.debug("System table already seeded")
        return
    system.insert({
        "version": SCHEMA_VERSION,
        "initialized": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })
    logger.info("✅ Initial tables seeded (schema v%s)", SCHEMA_VERSION)


# ─────────────────────────────────────────────────────────────────────────
#  Writer
# ─────────────────────────────────────────────────────────────────────────
def add_payment(db, scope: Scope, amount: float, timestamp: str | None = None) -> int:
    if timestamp is None:
        timestamp = datetime.now(timezone.utc).isoformat()
    entry = {
        "amount":     amount,
        "timestamp":  timestamp,
        "channel_id": str(scope.channel_id),
        "user_id":    str(scope.user_id),
    }
    try:
        doc_id = db.insert(PAYMENT_TABLE, entry)
    except Exception as exc:
        logger.exception("❌ Failed inserting payment for %s", scope)
        raise StoreFailure("create") from exc
    logger.info("📝 Payment #%s saved (%s for %s)", doc_id, amount, scope)
    return doc_id


# ─────────────────────────────────────────────────────────────────────────
#  Readers
# ─────────────────────────────────────────────────────────────────────────
def _sort_key(doc):
    return (datetime.fromisoformat(doc["timestamp"]), doc.doc_id)


def get_payments(db, scope: Scope) -> list:
    """
    All payments in a scope, oldest first. Position i in the result is
    ordinal i + 1.
    """
    Q = Query()
    try:
        rows = db.search(
            PAYMENT_TABLE,
            (Q.channel_id == str(scope.channel_id)) & (Q.user_id == str(scope.user_id)),
        )
    except Exception as exc:
        logger.exception("❌ Failed to fetch payments for %s", scope)
        raise StoreFailure("query") from exc
    rows.sort(key=_sort_key)
    logger.debug("Retrieved %d payments for %s", len(rows), scope)
    return rows


def total_amount(rows) -> float:
    return round(sum(r["amount"] for r in rows), 2)


# ─────────────────────────────────────────────────────────────────────────
#  Deleter
# ─────────────────────────────────────────────────────────────────────────
def remove_payments(db, doc_ids) -> list:
    """Delete the given payment ids in a single store write."""
    doc_ids = list(doc_ids)
    try:
        removed = db.remove(PAYMENT_TABLE, doc_ids=doc_ids)
    except Exception as exc:
        logger.exception("❌ Payment delete failed for ids %s", doc_ids)
        raise StoreFailure("remove") from exc
    logger.info("🗑️ Removed payments %s", removed)
    return removed
