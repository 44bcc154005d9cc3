"""
Sermon Library - MongoDB Repository

Item metadata lives in a single MongoDB collection accessed through motor,
the asyncio driver.  The client is created once at startup (see
``sermon_library.main``) and handed to :class:`ItemRepository`.

Documents keep the wire field names (``audioFile`` stays camelCase) so the
stored shape and the JSON shape match; only ``_id`` is renamed to ``id``.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from loguru import logger
from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
)
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from sermon_library.errors import NotFoundError

# Fields a client may set on an item
ITEM_FIELDS = ("name", "date", "speaker", "series", "thumbnail", "audioFile")


# ---------------------------------------------------------------------------
# Connection helpers
# ---------------------------------------------------------------------------
def connect(uri: str) -> AsyncIOMotorClient:
    """Create the process-wide MongoDB client (tz-aware datetimes)."""
    client: AsyncIOMotorClient = AsyncIOMotorClient(uri, tz_aware=True)
    logger.info("🍃 MongoDB client created")
    return client


def get_collection(
    client: AsyncIOMotorClient, db_name: str, collection_name: str
) -> AsyncIOMotorCollection:
    return client[db_name][collection_name]


async def ping(client: AsyncIOMotorClient) -> bool:
    """Return True if MongoDB answers a ping."""
    try:
        await client.admin.command("ping")
        return True
    except PyMongoError as e:
        logger.error(f"❌ MongoDB ping failed: {e}")
        return False


# ---------------------------------------------------------------------------
# Helper: convert a Mongo document to a plain dict
# ---------------------------------------------------------------------------
def document_to_item(doc: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Convert a stored document to an item dict with a string ``id``."""
    if doc is None:
        return {}
    item = {field: doc.get(field) for field in ITEM_FIELDS}
    item["id"] = str(doc["_id"])
    return item


def _object_id(item_id: str) -> ObjectId:
    """Parse *item_id*; an id that cannot exist is reported as not found."""
    if not ObjectId.is_valid(item_id):
        raise NotFoundError()
    return ObjectId(item_id)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------
class ItemRepository:
    """CRUD access to the items collection."""

    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self._collection = collection

    async def list_all(self) -> List[Dict[str, Any]]:
        """Fetch all items, newest date first."""
        cursor = self._collection.find().sort("date", DESCENDING)
        return [document_to_item(doc) async for doc in cursor]

    async def get_by_id(self, item_id: str) -> Dict[str, Any]:
        doc = await self._collection.find_one({"_id": _object_id(item_id)})
        if doc is None:
            raise NotFoundError()
        return document_to_item(doc)

    async def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new item and return it.  ``date`` defaults to now."""
        doc = {field: fields.get(field) for field in ITEM_FIELDS}
        if doc["date"] is None:
            doc["date"] = datetime.now(timezone.utc)

        result = await self._collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.success(f"✅ Item added (id={result.inserted_id}): {doc.get('name')}")
        return document_to_item(doc)

    async def update(self, item_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a sparse patch to an item.

        Only truthy values are written; omitted, None and empty values leave
        the stored value untouched.
        """
        oid = _object_id(item_id)
        changes = {k: v for k, v in fields.items() if k in ITEM_FIELDS and v}
        if not changes:
            return await self.get_by_id(item_id)

        doc = await self._collection.find_one_and_update(
            {"_id": oid},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFoundError()
        logger.info(f"🔄 Item updated (id={item_id}): {', '.join(sorted(changes))}")
        return document_to_item(doc)

    async def clear_file(self, item_id: str, field: str) -> None:
        """Drop the file reference held in *field* (``thumbnail``/``audioFile``)."""
        if field not in ("thumbnail", "audioFile"):
            raise ValueError(f"Not a file field: {field}")
        result = await self._collection.update_one(
            {"_id": _object_id(item_id)}, {"$set": {field: None}}
        )
        if result.matched_count == 0:
            raise NotFoundError()
        logger.info(f"🔄 Item {item_id}: cleared {field}")

    async def delete_by_id(self, item_id: str) -> None:
        result = await self._collection.delete_one({"_id": _object_id(item_id)})
        if result.deleted_count == 0:
            raise NotFoundError()
        logger.info(f"🗑️ Item deleted (id={item_id})")
