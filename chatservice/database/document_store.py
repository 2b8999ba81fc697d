"""Partitioned document store on top of a motor collection.

Every document is addressed by `(partition key, id)`; the JSON-encoded pair
is the Mongo `_id` and the parts are also kept as the flat `pk` / `id` fields
so partition-scoped queries and sorts can use a compound index.
"""
import functools
import json
from typing import Any, Dict, List, Optional, Tuple

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from chatservice.core.exceptions import ServiceUnavailableError
from chatservice.models.pagination import OrderBy
from chatservice.utils.cursor import decode_cursor, encode_cursor


logger = structlog.get_logger("chatservice.database")


class DocumentConflictError(Exception):
    """A document with the same (partition key, id) already exists."""


def _translate_unavailable(func):
    @functools.wraps(func)
    async def wrapper(self: "DocumentStore", *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except ConnectionFailure as e:
            logger.error(
                "document_store.unavailable",
                collection=self.name,
                operation=func.__name__,
                error=str(e),
            )
            raise ServiceUnavailableError(
                f"Document store is unavailable: {e}", {"collection": self.name}
            ) from e

    return wrapper


class DocumentStore:

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str) -> None:
        self.name = collection_name
        self._collection = db[collection_name]

    @staticmethod
    def _key(partition_key: str, item_id: str) -> str:
        return json.dumps([partition_key, item_id], separators=(",", ":"))

    def _document(self, partition_key: str, item_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        return {"_id": self._key(partition_key, item_id), "pk": partition_key, "id": item_id, **fields}

    @_translate_unavailable
    async def ensure_indexes(self, order_field: str) -> None:
        await self._collection.create_index([("pk", ASCENDING), (order_field, ASCENDING), ("id", ASCENDING)])

    @_translate_unavailable
    async def create(self, partition_key: str, item_id: str, fields: Dict[str, Any]) -> None:
        try:
            await self._collection.insert_one(self._document(partition_key, item_id, fields))
        except DuplicateKeyError as e:
            raise DocumentConflictError(f"{self.name}: {partition_key}/{item_id}") from e

    @_translate_unavailable
    async def read(self, partition_key: str, item_id: str) -> Optional[Dict[str, Any]]:
        return await self._collection.find_one({"_id": self._key(partition_key, item_id)})

    @_translate_unavailable
    async def upsert(self, partition_key: str, item_id: str, fields: Dict[str, Any]) -> None:
        await self._collection.replace_one(
            {"_id": self._key(partition_key, item_id)},
            self._document(partition_key, item_id, fields),
            upsert=True,
        )

    @_translate_unavailable
    async def update_fields(self, partition_key: str, item_id: str, fields: Dict[str, Any]) -> bool:
        result = await self._collection.update_one(
            {"_id": self._key(partition_key, item_id)},
            {"$set": fields},
        )
        return result.matched_count > 0

    @_translate_unavailable
    async def delete(self, partition_key: str, item_id: str) -> None:
        # deleting a missing document is not an error
        await self._collection.delete_one({"_id": self._key(partition_key, item_id)})

    @_translate_unavailable
    async def partition_exists(self, partition_key: str) -> bool:
        found = await self._collection.find_one({"pk": partition_key}, {"_id": 1})
        return found is not None

    @_translate_unavailable
    async def query_page(
        self,
        partition_key: str,
        *,
        order_field: str,
        order: OrderBy,
        limit: int,
        since: int,
        cursor: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        """One page of a partition, filtered to `order_field > since`.

        Rows are ordered by `(order_field, id)` so a cursor that remembers the
        last row's pair resumes exactly after it, whatever gets inserted
        elsewhere in the partition meanwhile.
        """
        query_shape = {
            "collection": self.name,
            "pk": partition_key,
            "order_field": order_field,
            "order": order.value,
            "since": since,
        }
        query: Dict[str, Any] = {"pk": partition_key, order_field: {"$gt": since}}
        if cursor is not None:
            last_value, last_id = decode_cursor(cursor, query_shape)
            op = "$gt" if order is OrderBy.ASC else "$lt"
            query = {
                "$and": [
                    query,
                    {
                        "$or": [
                            {order_field: {op: last_value}},
                            {order_field: last_value, "id": {op: last_id}},
                        ]
                    },
                ]
            }

        direction = ASCENDING if order is OrderBy.ASC else DESCENDING
        # one extra row tells whether another page exists
        cur = self._collection.find(query).sort([(order_field, direction), ("id", direction)]).limit(limit + 1)
        items = await cur.to_list(length=limit + 1)

        next_cursor = None
        if len(items) > limit:
            items = items[:limit]
            last = items[-1]
            next_cursor = encode_cursor((last[order_field], last["id"]), query_shape)
        return items, next_cursor
