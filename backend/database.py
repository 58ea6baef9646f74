"""
MongoDB access for the Kanban backend.

`connect()` is called once at startup. Request handlers receive the database
through the `get_db` dependency so tests can swap in another one.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Union

from fastapi import HTTPException
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import settings

logger = logging.getLogger(__name__)

client: Optional[MongoClient] = None
db: Optional[Database] = None


def connect(url: Optional[str] = None, name: Optional[str] = None) -> Database:
    """Open the client, ping the server and ensure indexes.

    Raises pymongo.errors.PyMongoError when the server is unreachable.
    """
    global client, db
    url = url or settings.database_url
    name = name or settings.database_name

    mongo = MongoClient(url, serverSelectionTimeoutMS=settings.db_timeout_ms)
    try:
        mongo.admin.command("ping")
    except Exception:
        mongo.close()
        raise

    database = mongo[name]
    ensure_indexes(database)
    client, db = mongo, database
    logger.info("MongoDB connected (database=%s)", name)
    return database


def close() -> None:
    global client, db
    if client is not None:
        client.close()
    client, db = None, None


def ensure_indexes(database: Database) -> None:
    database["user"].create_index([("username", ASCENDING)], unique=True)
    database["task"].create_index([("owners", ASCENDING)])


def get_db() -> Database:
    if db is None:
        raise HTTPException(status_code=500, detail="Database not configured")
    return db


def create_document(database: Database, collection: str, data: Union[BaseModel, dict]) -> str:
    """Insert a document with created/updated timestamps, return its id as str."""
    doc: dict[str, Any] = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    now = datetime.now(timezone.utc)
    doc["created_at"] = now
    doc["updated_at"] = now
    result = database[collection].insert_one(doc)
    return str(result.inserted_id)


def find_one(database: Database, collection: str, filter_dict: dict) -> Optional[dict]:
    return database[collection].find_one(filter_dict)
