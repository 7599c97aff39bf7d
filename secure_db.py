import os
import json
import base64
import logging
from tinydb import TinyDB
from tinydb.storages import JSONStorage, Storage
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from cryptography.fernet import Fernet, InvalidToken

import config

logger = logging.getLogger("secure_db")


class EncryptedJSONStorage(Storage):
    """TinyDB storage that keeps the whole JSON document Fernet-encrypted on disk."""

    def __init__(self, path, fernet: Fernet):
        self.path = path
        self.fernet = fernet

    def read(self):
        logger.debug("READ %s", self.path)
        if not os.path.exists(self.path):
            logger.warning("📂 DB file does not exist yet")
            return None
        with open(self.path, "r", encoding="utf-8") as f:
            raw = f.read()
        if not raw:
            logger.warning("📂 DB file is empty")
            return None
        try:
            token = base64.urlsafe_b64decode(raw.encode())
            decrypted = self.fernet.decrypt(token)
        except InvalidToken:
            logger.error("🔒 Decryption failed: wrong passphrase or unencrypted DB")
            raise
        return json.loads(decrypted.decode())

    def write(self, data):
        logger.debug("WRITE %s", self.path)
        json_str = json.dumps(data, separators=(",", ":")).encode()
        token = self.fernet.encrypt(json_str)
        encoded = base64.urlsafe_b64encode(token).decode()
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(encoded)
            f.flush()

    def close(self):
        pass


class SecureDB:
    """
    Record store over TinyDB.

    Opened once at bootstrap; handlers only go through the pass-through
    methods below, which refuse to run while the store is closed.
    """

    def __init__(self, path: str | None = None,
                 salt_path: str | None = None,
                 encrypted: bool | None = None):
        self.path = path or config.DB_PATH
        self.salt_path = salt_path or config.SALT_PATH
        self.encrypted = config.ENABLE_ENCRYPTION if encrypted is None else encrypted
        self.db = None
        self.fernet = None

    def _load_salt(self) -> bytes:
        if not os.path.exists(self.salt_path):
            os.makedirs(os.path.dirname(self.salt_path) or ".", exist_ok=True)
            salt = os.urandom(16)
            with open(self.salt_path, "wb") as f:
                f.write(salt)
            logger.info("🧂 Generated new KDF salt at %s", self.salt_path)
            return salt
        with open(self.salt_path, "rb") as f:
            salt = f.read()
        logger.debug("🔑 Loaded existing KDF salt (%d bytes)", len(salt))
        return salt

    def _derive_key(self, passphrase: str) -> Fernet:
        kdf = Scrypt(
            salt=self._load_salt(),
            length=32,
            n=2**14,
            r=8,
            p=1,
        )
        key = kdf.derive(passphrase.encode("utf-8"))
        return Fernet(base64.urlsafe_b64encode(key))

    def open(self, passphrase: str | None = None):
        if self.db is not None:
            logger.info("🔓 Database already open")
            return
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        if self.encrypted:
            if not passphrase:
                raise RuntimeError("🔒 A passphrase is required to open the encrypted database.")
            self.fernet = self._derive_key(passphrase)
            db = TinyDB(self.path, storage=lambda p: EncryptedJSONStorage(p, self.fernet))
        else:
            db = TinyDB(self.path, storage=JSONStorage)
        try:
            db.tables()
        except Exception:
            db.close()
            logger.error("❌ Could not open database at %s", self.path)
            raise
        self.db = db
        logger.info("✅ Database opened at %s (encrypted=%s)", self.path, self.encrypted)

    def close(self):
        if self.db is not None:
            self.db.close()
            self.db = None
            logger.info("🔒 Database closed")

    def is_open(self) -> bool:
        return self.db is not None

    def ensure_open(self):
        if self.db is None:
            raise RuntimeError("🔒 Database is not open.")

    # ===== Pass-through TinyDB methods for use in handlers =====

    def table(self, table):
        self.ensure_open()
        return self.db.table(table)

    def insert(self, table, doc):
        return self.table(table).insert(doc)

    def all(self, table):
        return self.table(table).all()

    def search(self, table, cond):
        return self.table(table).search(cond)

    def get(self, table, cond=None, doc_id=None):
        return self.table(table).get(cond, doc_id=doc_id)

    def remove(self, table, doc_ids=None, cond=None):
        if doc_ids is not None:
            return self.table(table).remove(doc_ids=list(doc_ids))
        return self.table(table).remove(cond)
