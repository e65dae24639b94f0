"""
MongoDB access for the Artizone API.

A single client is created lazily and shared by every request. Route handlers
receive the database through the `get_db` dependency so tests can swap it out.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument
from pymongo.database import Database

import config
from errors import ValidationFailed

_client: Optional[MongoClient] = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        _client = MongoClient(config.DATABASE_URL)
    return _client


def get_db() -> Database:
    return get_client()[config.DATABASE_NAME]


def now() -> datetime:
    return datetime.now(timezone.utc)


def to_obj_id(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except Exception:
        raise ValidationFailed("Invalid id")


def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document with fresh timestamps and return its id as a string."""
    if isinstance(data, BaseModel):
        doc = data.model_dump()
    else:
        doc = dict(data)
    doc["created_at"] = now()
    doc["updated_at"] = now()
    result = db[collection_name].insert_one(doc)
    return str(result.inserted_id)


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    sort: Optional[List[tuple]] = None,
    skip: int = 0,
    limit: int = 0,
) -> List[dict]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if skip:
        cursor = cursor.skip(skip)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def update_document(db: Database, collection_name: str, doc_id: ObjectId, update: Dict[str, Any]) -> Optional[dict]:
    """Apply a `$set`-style update, refresh `updated_at` and return the new document."""
    ops = {k: v for k, v in update.items() if k.startswith("$")}
    fields = {k: v for k, v in update.items() if not k.startswith("$")}
    fields["updated_at"] = now()
    ops["$set"] = {**ops.get("$set", {}), **fields}
    return db[collection_name].find_one_and_update(
        {"_id": doc_id}, ops, return_document=ReturnDocument.AFTER
    )


def next_sequence(db: Database, name: str) -> int:
    """Atomically increment and return the named counter."""
    counter = db["counter"].find_one_and_update(
        {"_id": name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return counter["seq"]


def ensure_indexes(db: Database) -> None:
    db["user"].create_index("email", unique=True)
    db["order"].create_index("order_number", unique=True)
    db["product"].create_index([("category", 1), ("price", 1)])
    db["product"].create_index("artisan_id")
    db["event"].create_index("schedule.start_date")
    db["event"].create_index([("type", 1), ("categories", 1)])
