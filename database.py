"""
MongoDB access for Team Corner.

Helpers take the pymongo Database explicitly so the application (and the
tests) decide which database they talk to. Records come back with their
`_id` turned into a string `id`.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.errors import DuplicateKeyError
from pymongo.database import Database

import config
from access import AllowAll, AllowFiltered, Decision
from exceptions import DuplicateValueException

logger = logging.getLogger(__name__)

TRACKING_FIELDS = ("created_at", "updated_at", "created_by", "updated_by")


def connect(url: Optional[str] = None, name: Optional[str] = None) -> Database:
    url = url or config.DATABASE_URL
    if not url:
        raise RuntimeError("DATABASE_URL must be set in production")
    client = MongoClient(url)
    logger.info(f"Connected to MongoDB database '{name or config.DATABASE_NAME}'")
    return client[name or config.DATABASE_NAME]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_dict(data: Union[BaseModel, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    return dict(data)


def _duplicate(error: DuplicateKeyError) -> DuplicateValueException:
    key_pattern = (error.details or {}).get("keyPattern") or {}
    return DuplicateValueException(next(iter(key_pattern), "value"))


def to_record(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return doc


def decision_to_query(decision: Decision) -> Optional[Dict[str, Any]]:
    """Mongo query for a decision, or None when nothing may match."""
    if isinstance(decision, AllowAll):
        return {}
    if isinstance(decision, AllowFiltered):
        query: Dict[str, Any] = {}
        for key, value in decision.filter.items():
            if key == "id":
                if not ObjectId.is_valid(value):
                    return None
                query["_id"] = ObjectId(value)
            else:
                query[key] = value
        return query
    return None


def create_document(
    db: Database,
    collection_name: str,
    data: Union[BaseModel, Dict[str, Any]],
    actor_id: Optional[str] = None,
    tracking: bool = True,
) -> str:
    doc = _as_dict(data)
    if tracking:
        now = _now()
        doc.update(created_at=now, updated_at=now, created_by=actor_id, updated_by=actor_id)
    try:
        result = db[collection_name].insert_one(doc)
    except DuplicateKeyError as e:
        raise _duplicate(e) from e
    logger.info(f"Created {collection_name} {result.inserted_id} by {actor_id or 'system'}")
    return str(result.inserted_id)


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    cursor = db[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return [to_record(doc) for doc in cursor]


def get_document(db: Database, collection_name: str, doc_id: ObjectId) -> Optional[Dict[str, Any]]:
    return to_record(db[collection_name].find_one({"_id": doc_id}))


def find_one(db: Database, collection_name: str, filter_dict: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return to_record(db[collection_name].find_one(filter_dict))


def update_document(
    db: Database,
    collection_name: str,
    doc_id: ObjectId,
    changes: Dict[str, Any],
    actor_id: Optional[str] = None,
    tracking: bool = True,
) -> Optional[Dict[str, Any]]:
    changes = dict(changes)
    if tracking:
        changes.update(updated_at=_now(), updated_by=actor_id)
    if changes:
        try:
            db[collection_name].update_one({"_id": doc_id}, {"$set": changes})
        except DuplicateKeyError as e:
            raise _duplicate(e) from e
        logger.info(f"Updated {collection_name} {doc_id} by {actor_id or 'system'}")
    return get_document(db, collection_name, doc_id)


def delete_document(db: Database, collection_name: str, doc_id: ObjectId) -> bool:
    result = db[collection_name].delete_one({"_id": doc_id})
    if result.deleted_count:
        logger.info(f"Deleted {collection_name} {doc_id}")
    return bool(result.deleted_count)


def count_documents(db: Database, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None) -> int:
    return db[collection_name].count_documents(filter_dict or {})
