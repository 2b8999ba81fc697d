from typing import List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from chatservice.core.exceptions import InvalidArgumentError
from chatservice.database.document_store import DocumentStore
from chatservice.models.pagination import OrderBy
from chatservice.models.user_conversation import UserConversationDocument
from chatservice.schemas.conversation import UserConversation


class UserConversationRepository:
    """Per-user conversation index, partitioned by username.

    Each two-party conversation has one row per participant so a user's
    conversation list is a single-partition query.
    """

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._store = DocumentStore(db, "user_conversations")

    async def ensure_indexes(self) -> None:
        await self._store.ensure_indexes("last_modified_unix_ms")

    async def upsert_user_conversation(self, entry: UserConversation) -> None:
        if (
            not entry.username.strip()
            or not entry.conversation_id.strip()
            or entry.last_modified_unix_ms < 0
        ):
            raise InvalidArgumentError(f"Invalid user conversation {entry!r}.")
        await self._store.upsert(
            entry.username,
            entry.conversation_id,
            {"last_modified_unix_ms": entry.last_modified_unix_ms},
        )

    async def get_user_conversation(self, username: str, conversation_id: str) -> Optional[UserConversation]:
        _validate_username(username)
        if not conversation_id or not conversation_id.strip():
            raise InvalidArgumentError(f"Invalid conversationId {conversation_id!r}.")
        doc = await self._store.read(username, conversation_id)
        return _to_user_conversation(doc) if doc else None

    async def get_user_conversations(
        self,
        username: str,
        limit: int,
        order: OrderBy = OrderBy.DESC,
        cursor: Optional[str] = None,
        since_unix_ms: int = 0,
    ) -> Tuple[List[UserConversation], Optional[str]]:
        _validate_username(username)
        if limit <= 0:
            raise InvalidArgumentError(f"Invalid limit {limit}. Limit must be greater or equal to 1.")
        if since_unix_ms < 0:
            raise InvalidArgumentError(
                f"Invalid lastSeenConversationTime {since_unix_ms}. It must be greater or equal to 0."
            )

        docs, next_cursor = await self._store.query_page(
            username,
            order_field="last_modified_unix_ms",
            order=order,
            limit=limit,
            since=since_unix_ms,
            cursor=cursor,
        )
        return [_to_user_conversation(doc) for doc in docs], next_cursor

    async def delete_user_conversation(self, username: str, conversation_id: str) -> None:
        await self._store.delete(username, conversation_id)


def _validate_username(username: str) -> None:
    if not username or not username.strip():
        raise InvalidArgumentError(f"Invalid username {username!r}.")


def _to_user_conversation(doc: UserConversationDocument) -> UserConversation:
    return UserConversation(
        username=doc["pk"],
        conversation_id=doc["id"],
        last_modified_unix_ms=doc["last_modified_unix_ms"],
    )
