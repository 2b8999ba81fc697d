import asyncio
import time
from typing import Callable, List, Optional, Protocol

import structlog

from chatservice.core.exceptions import (
    ConversationNotFoundError,
    ForbiddenError,
    InvalidArgumentError,
    MessageExistsError,
    UserNotFoundError,
)
from chatservice.repositories.message_repository import MessageRepository
from chatservice.repositories.user_conversation_repository import UserConversationRepository
from chatservice.schemas.conversation import (
    Conversation,
    GetConversationsParams,
    GetConversationsResult,
    StartConversationRequest,
    StartConversationResult,
    UserConversation,
)
from chatservice.schemas.message import (
    GetMessagesParams,
    GetMessagesResult,
    Message,
    SendMessageRequest,
    SendMessageResult,
)
from chatservice.schemas.profile import Profile
from chatservice.utils.conversation_key import derive_conversation_id, other_participant, split_conversation_id


logger = structlog.get_logger("chatservice.services.conversations")


class ProfileLookup(Protocol):

    async def profile_exists(self, username: str) -> bool: ...

    async def find_profile(self, username: str) -> Optional[Profile]: ...


def now_unix_ms() -> int:
    return int(time.time() * 1000)


class ConversationService:
    """Starts conversations, posts messages and serves both paginated views.

    Messages are the source of truth; the per-user index is written after
    every successful post, one upsert per participant, concurrently and
    without rollback. A failed upsert leaves the two participants' rows with
    different timestamps until a retry of the same post, or the next post in
    that conversation, rewrites both.
    """

    def __init__(
        self,
        message_repo: MessageRepository,
        user_conversation_repo: UserConversationRepository,
        profiles: ProfileLookup,
        clock: Callable[[], int] = now_unix_ms,
    ) -> None:
        self._message_repo = message_repo
        self._user_conversation_repo = user_conversation_repo
        self._profiles = profiles
        self._clock = clock

    async def start_conversation(self, request: StartConversationRequest) -> StartConversationResult:
        participants = request.participants
        if (
            len(participants) != 2
            or any(not username or not username.strip() for username in participants)
            or participants[0] == participants[1]
        ):
            raise InvalidArgumentError(
                f"Invalid participants list {participants}. There must be 2 unique participant usernames."
            )
        _validate_send_message_request(request.first_message)
        if request.first_message.sender_username not in participants:
            raise InvalidArgumentError(
                f"Sender {request.first_message.sender_username} is not one of the participants {participants}."
            )
        conversation_id = derive_conversation_id(participants[0], participants[1])

        found = await _gather_all(*(self._profiles.profile_exists(username) for username in participants))
        for username, exists in zip(participants, found):
            if not exists:
                raise UserNotFoundError(username)

        created_at = await self._store_message(conversation_id, request.first_message)
        await self._fan_out(conversation_id, created_at)
        logger.info("conversation.started", conversation_id=conversation_id)
        return StartConversationResult(id=conversation_id, created_at_unix_ms=created_at)

    async def post_message(
        self, conversation_id: str, is_first_message: bool, request: SendMessageRequest
    ) -> SendMessageResult:
        _validate_send_message_request(request)
        split_conversation_id(conversation_id)

        if not is_first_message and not await self._message_repo.conversation_exists(conversation_id):
            raise ConversationNotFoundError(conversation_id)

        if not await self._profiles.profile_exists(request.sender_username):
            raise UserNotFoundError(request.sender_username)

        _authorize_sender(conversation_id, request.sender_username)

        created_at = await self._store_message(conversation_id, request)
        await self._fan_out(conversation_id, created_at)
        return SendMessageResult(created_at_unix_ms=created_at)

    async def get_messages(self, conversation_id: str, params: GetMessagesParams) -> GetMessagesResult:
        split_conversation_id(conversation_id)
        _validate_page(params.limit, params.last_seen_message_time, "lastSeenMessageTime")

        if not await self._message_repo.conversation_exists(conversation_id):
            raise ConversationNotFoundError(conversation_id)

        messages, next_cursor = await self._message_repo.get_messages(
            conversation_id,
            limit=params.limit,
            order=params.order,
            cursor=params.continuation_token,
            since_unix_ms=params.last_seen_message_time,
        )
        return GetMessagesResult(messages=messages, next_continuation_token=next_cursor)

    async def get_conversations(self, username: str, params: GetConversationsParams) -> GetConversationsResult:
        if not username or not username.strip():
            raise InvalidArgumentError(f"Invalid username {username!r}.")
        _validate_page(params.limit, params.last_seen_conversation_time, "lastSeenConversationTime")

        if not await self._profiles.profile_exists(username):
            raise UserNotFoundError(username)

        entries, next_cursor = await self._user_conversation_repo.get_user_conversations(
            username,
            limit=params.limit,
            order=params.order,
            cursor=params.continuation_token,
            since_unix_ms=params.last_seen_conversation_time,
        )
        conversations = await self._to_conversations(entries)
        return GetConversationsResult(conversations=conversations, next_continuation_token=next_cursor)

    async def _store_message(self, conversation_id: str, request: SendMessageRequest) -> int:
        created_at = self._clock()
        message = Message(
            id=request.id,
            conversation_id=conversation_id,
            sender_username=request.sender_username,
            text=request.text,
            created_at_unix_ms=created_at,
        )
        try:
            await self._message_repo.add_message(conversation_id, message)
        except MessageExistsError:
            # Retried delivery: refresh the stored timestamp and rewrite both index
            # rows, still report the conflict.
            logger.warning(
                "message.duplicate_delivery",
                conversation_id=conversation_id,
                message_id=request.id,
            )
            await self._message_repo.update_message_time(conversation_id, request.id, created_at)
            await self._fan_out(conversation_id, created_at)
            raise
        return created_at

    async def _fan_out(self, conversation_id: str, last_modified: int) -> None:
        entries = [
            UserConversation(username=username, conversation_id=conversation_id, last_modified_unix_ms=last_modified)
            for username in split_conversation_id(conversation_id)
        ]
        results = await asyncio.gather(
            *(self._user_conversation_repo.upsert_user_conversation(entry) for entry in entries),
            return_exceptions=True,
        )
        failures = [(entry, result) for entry, result in zip(entries, results) if isinstance(result, BaseException)]
        for entry, error in failures:
            logger.error(
                "index.fan_out_failed",
                conversation_id=conversation_id,
                username=entry.username,
                error=str(error),
            )
        if failures:
            raise failures[0][1]

    async def _to_conversations(self, entries: List[UserConversation]) -> List[Conversation]:
        recipients = await _gather_all(
            *(
                self._profiles.find_profile(other_participant(entry.conversation_id, entry.username))
                for entry in entries
            )
        )
        conversations = []
        for entry, recipient in zip(entries, recipients):
            if recipient is None:
                logger.warning(
                    "conversation.recipient_missing",
                    conversation_id=entry.conversation_id,
                    username=entry.username,
                )
            conversations.append(
                Conversation(
                    id=entry.conversation_id,
                    last_modified_unix_ms=entry.last_modified_unix_ms,
                    recipient=recipient,
                )
            )
        return conversations


async def _gather_all(*aws):
    """Await every awaitable, then raise the first failure in argument order."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


def _validate_send_message_request(request: SendMessageRequest) -> None:
    if (
        not request.id.strip()
        or not request.sender_username.strip()
        or not request.text.strip()
    ):
        raise InvalidArgumentError(f"Invalid SendMessageRequest {request!r}.")


def _validate_page(limit: int, last_seen: int, last_seen_name: str) -> None:
    if limit <= 0:
        raise InvalidArgumentError(f"Invalid limit {limit}. Limit must be greater or equal to 1.")
    if last_seen < 0:
        raise InvalidArgumentError(
            f"Invalid {last_seen_name} {last_seen}. {last_seen_name} must be greater or equal to 0."
        )


def _authorize_sender(conversation_id: str, sender_username: str) -> None:
    if sender_username not in split_conversation_id(conversation_id):
        raise ForbiddenError(
            f"User {sender_username} is not a participant of conversation {conversation_id}.",
            {"conversation_id": conversation_id, "username": sender_username},
        )
