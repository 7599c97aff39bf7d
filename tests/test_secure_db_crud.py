import pytest
from cryptography.fernet import InvalidToken
from tinydb import Query

from secure_db import SecureDB


def test_db_crud(db):
    doc_id = db.insert("electric_payment", {"amount": 1.5, "user_id": "u"})
    assert db.get("electric_payment", doc_id=doc_id)["amount"] == 1.5
    assert db.search("electric_payment", Query().user_id == "u")
    assert db.remove("electric_payment", doc_ids=[doc_id]) == [doc_id]
    assert db.all("electric_payment") == []


def test_seed_is_idempotent(db):
    from handlers.ledger import seed_tables
    seed_tables(db)
    assert len(db.all("system")) == 1


def test_closed_store_refuses_access(tmp_path):
    store = SecureDB(str(tmp_path / "db.json"), encrypted=False)
    with pytest.raises(RuntimeError):
        store.all("electric_payment")


def test_encrypted_store_roundtrip(tmp_path):
    path = tmp_path / "enc.json"
    salt = tmp_path / "salt.bin"

    store = SecureDB(str(path), str(salt), encrypted=True)
    store.open("correct horse")
    store.insert("electric_payment", {"amount": 42.0})
    store.close()

    assert "amount" not in path.read_text()
    assert salt.exists()

    again = SecureDB(str(path), str(salt), encrypted=True)
    again.open("correct horse")
    assert again.all("electric_payment")[0]["amount"] == 42.0
    again.close()


def test_encrypted_store_rejects_wrong_passphrase(tmp_path):
    path, salt = str(tmp_path / "enc.json"), str(tmp_path / "salt.bin")
    store = SecureDB(path, salt, encrypted=True)
    store.open("right")
    store.insert("electric_payment", {"amount": 1.0})
    store.close()

    wrong = SecureDB(path, salt, encrypted=True)
    with pytest.raises(InvalidToken):
        wrong.open("wrong")
    assert not wrong.is_open()


def test_encrypted_store_needs_passphrase(tmp_path):
    store = SecureDB(str(tmp_path / "enc.json"), str(tmp_path / "salt.bin"), encrypted=True)
    with pytest.raises(RuntimeError):
        store.open("")
