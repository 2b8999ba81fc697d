from typing import Any, Dict, List, Optional, Tuple

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase

from chatservice.core.exceptions import InvalidArgumentError, MessageExistsError, MessageNotFoundError
from chatservice.database.document_store import DocumentConflictError, DocumentStore
from chatservice.models.message import MessageDocument
from chatservice.models.pagination import OrderBy
from chatservice.schemas.message import Message


logger = structlog.get_logger("chatservice.repositories.messages")


class MessageRepository:
    """Messages partitioned by conversation id.

    A conversation has no record of its own: it exists as soon as its
    partition holds one message.
    """

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._store = DocumentStore(db, "messages")

    async def ensure_indexes(self) -> None:
        await self._store.ensure_indexes("created_at_unix_ms")

    async def add_message(self, conversation_id: str, message: Message) -> None:
        _validate_conversation_id(conversation_id)
        if (
            not message.id.strip()
            or not message.sender_username.strip()
            or not message.text.strip()
            or message.created_at_unix_ms < 0
        ):
            raise InvalidArgumentError(f"Invalid message {message!r}.")

        try:
            await self._store.create(conversation_id, message.id, _to_fields(message))
        except DocumentConflictError:
            raise MessageExistsError(conversation_id, message.id) from None
        logger.info("message.added", conversation_id=conversation_id, message_id=message.id)

    async def get_message(self, conversation_id: str, message_id: str) -> Optional[Message]:
        _validate_conversation_id(conversation_id)
        _validate_message_id(message_id)
        doc = await self._store.read(conversation_id, message_id)
        return _to_message(doc) if doc else None

    async def get_messages(
        self,
        conversation_id: str,
        limit: int,
        order: OrderBy = OrderBy.DESC,
        cursor: Optional[str] = None,
        since_unix_ms: int = 0,
    ) -> Tuple[List[Message], Optional[str]]:
        _validate_conversation_id(conversation_id)
        if limit <= 0:
            raise InvalidArgumentError(f"Invalid limit {limit}. Limit must be greater or equal to 1.")
        if since_unix_ms < 0:
            raise InvalidArgumentError(
                f"Invalid lastSeenMessageTime {since_unix_ms}. It must be greater or equal to 0."
            )

        docs, next_cursor = await self._store.query_page(
            conversation_id,
            order_field="created_at_unix_ms",
            order=order,
            limit=limit,
            since=since_unix_ms,
            cursor=cursor,
        )
        return [_to_message(doc) for doc in docs], next_cursor

    async def conversation_exists(self, conversation_id: str) -> bool:
        _validate_conversation_id(conversation_id)
        return await self._store.partition_exists(conversation_id)

    async def update_message_time(self, conversation_id: str, message_id: str, unix_ms: int) -> None:
        """Only the timestamp changes; sender and text stay as first stored."""
        _validate_conversation_id(conversation_id)
        _validate_message_id(message_id)
        if unix_ms < 0:
            raise InvalidArgumentError(f"Invalid message time {unix_ms}.")
        updated = await self._store.update_fields(
            conversation_id, message_id, {"created_at_unix_ms": unix_ms}
        )
        if not updated:
            raise MessageNotFoundError(conversation_id, message_id)

    async def delete_message(self, conversation_id: str, message_id: str) -> None:
        await self._store.delete(conversation_id, message_id)


def _validate_conversation_id(conversation_id: str) -> None:
    if not conversation_id or not conversation_id.strip():
        raise InvalidArgumentError(f"Invalid conversationId {conversation_id!r}.")


def _validate_message_id(message_id: str) -> None:
    if not message_id or not message_id.strip():
        raise InvalidArgumentError(f"Invalid message id {message_id!r}.")


def _to_fields(message: Message) -> Dict[str, Any]:
    return {
        "sender_username": message.sender_username,
        "text": message.text,
        "created_at_unix_ms": message.created_at_unix_ms,
    }


def _to_message(doc: MessageDocument) -> Message:
    return Message(
        id=doc["id"],
        conversation_id=doc["pk"],
        sender_username=doc["sender_username"],
        text=doc["text"],
        created_at_unix_ms=doc["created_at_unix_ms"],
    )
