from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from access import ALLOW_ALL, DENIED, AllowFiltered
from database import (
    create_document,
    decision_to_query,
    delete_document,
    get_document,
    get_documents,
    update_document,
)
from exceptions import DuplicateValueException


def test_decision_to_query():
    oid = ObjectId()
    assert decision_to_query(ALLOW_ALL) == {}
    assert decision_to_query(DENIED) is None
    assert decision_to_query(AllowFiltered(filter={"id": str(oid)})) == {"_id": oid}
    # an id that can never exist matches nothing
    assert decision_to_query(AllowFiltered(filter={"id": "7"})) is None


def test_create_stamps_tracking(db):
    new_id = create_document(db, "player", {"first_name": "Patrick", "last_name": "Horgan"}, actor_id="abc")
    record = get_document(db, "player", ObjectId(new_id))
    assert record["id"] == new_id
    assert record["created_by"] == "abc"
    assert record["updated_by"] == "abc"
    assert record["created_at"] is not None
    assert record["updated_at"] is not None


def test_create_without_tracking(db):
    new_id = create_document(db, "user", {"email": "a@b.ie"}, tracking=False)
    record = get_document(db, "user", ObjectId(new_id))
    assert "created_at" not in record
    assert "created_by" not in record


def test_update_restamps(db):
    new_id = create_document(db, "player", {"first_name": "Patrick", "last_name": "Horgan"}, actor_id="abc")
    before = get_document(db, "player", ObjectId(new_id))
    after = update_document(db, "player", ObjectId(new_id), {"first_name": "Pádraig"}, actor_id="def")
    assert after["first_name"] == "Pádraig"
    assert after["created_by"] == "abc"
    assert after["updated_by"] == "def"
    assert after["updated_at"] >= before["updated_at"]


def test_get_documents_filters(db):
    create_document(db, "team", {"name": "Minors"})
    create_document(db, "team", {"name": "Seniors"})
    assert [t["name"] for t in get_documents(db, "team", {"name": "Seniors"})] == ["Seniors"]
    assert len(get_documents(db, "team")) == 2
    assert len(get_documents(db, "team", limit=1)) == 1


def test_delete(db):
    new_id = create_document(db, "team", {"name": "Minors"})
    assert delete_document(db, "team", ObjectId(new_id)) is True
    assert delete_document(db, "team", ObjectId(new_id)) is False
    assert get_document(db, "team", ObjectId(new_id)) is None


def test_duplicate_key_becomes_duplicate_value(db):
    db["user"].create_index("email", unique=True, sparse=True)
    create_document(db, "user", {"email": "a@b.ie"}, tracking=False)
    with pytest.raises(DuplicateValueException):
        create_document(db, "user", {"email": "a@b.ie"}, tracking=False)


def test_duplicate_key_reports_field():
    db = MagicMock()
    error = DuplicateKeyError("E11000 duplicate key", 11000, {"keyPattern": {"email": 1}})
    db["user"].insert_one.side_effect = error
    db["user"].update_one.side_effect = error
    db["user"].find_one.return_value = None

    with pytest.raises(DuplicateValueException) as exc:
        create_document(db, "user", {"email": "a@b.ie"}, tracking=False)
    assert exc.value.field_name == "email"

    with pytest.raises(DuplicateValueException):
        update_document(db, "user", ObjectId(), {"email": "a@b.ie"}, tracking=False)
