import pytest
import os
import sys

# Ensure project root is in sys.path so config can be imported
current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.abspath(os.path.join(current_dir, os.pardir))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from secure_db import SecureDB
from handlers.ledger import Scope, seed_tables


@pytest.fixture
def db(tmp_path):
    # fresh, unencrypted store per test
    test_db = SecureDB(str(tmp_path / "test_db.json"),
                       str(tmp_path / "kdf_salt.bin"),
                       encrypted=False)
    test_db.open()
    seed_tables(test_db)
    yield test_db
    test_db.close()


@pytest.fixture
def scope():
    return Scope("chan-A", "user-U")
