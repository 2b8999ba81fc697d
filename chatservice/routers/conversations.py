from typing import Dict, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, status

from chatservice.core.config import get_settings
from chatservice.database.connection import mongo_db_dependency
from chatservice.models.pagination import OrderBy
from chatservice.repositories.message_repository import MessageRepository
from chatservice.repositories.profile_repository import ProfileRepository
from chatservice.repositories.user_conversation_repository import UserConversationRepository
from chatservice.schemas.conversation import (
    GetConversationsParams,
    GetConversationsResponse,
    StartConversationRequest,
    StartConversationResult,
)
from chatservice.schemas.message import GetMessagesParams, GetMessagesResponse, SendMessageRequest, SendMessageResult
from chatservice.services.conversation_service import ConversationService
from chatservice.services.profile_service import ProfileService


router = APIRouter(prefix="/api/conversations", tags=["conversations"])


def get_conversation_service(db = Depends(mongo_db_dependency)) -> ConversationService:
    message_repo = MessageRepository(db)
    user_conversation_repo = UserConversationRepository(db)
    profile_service = ProfileService(ProfileRepository(db))
    return ConversationService(message_repo, user_conversation_repo, profile_service)


def _page_size(limit: Optional[int]) -> int:
    pagination = get_settings().PAGINATION
    if limit is None:
        return pagination.DEFAULT_PAGE_SIZE
    return min(limit, pagination.MAX_PAGE_SIZE)


def _next_uri(path: str, query: Dict[str, object], next_token: Optional[str]) -> Optional[str]:
    if next_token is None:
        return None
    return f"{path}?{urlencode({**query, 'continuationToken': next_token})}"


@router.get("", response_model=GetConversationsResponse)
async def get_conversations(username: str, limit: Optional[int] = None, order_by: OrderBy = Query(OrderBy.DESC, alias="orderBy"), continuation_token: Optional[str] = Query(None, alias="continuationToken"), last_seen_conversation_time: int = Query(0, alias="lastSeenConversationTime"), service: ConversationService = Depends(get_conversation_service)):
    params = GetConversationsParams(
        limit=_page_size(limit),
        order=order_by,
        continuation_token=continuation_token,
        last_seen_conversation_time=last_seen_conversation_time,
    )
    result = await service.get_conversations(username, params)
    next_uri = _next_uri(
        router.prefix,
        {
            "username": username,
            "limit": params.limit,
            "orderBy": order_by.value,
            "lastSeenConversationTime": last_seen_conversation_time,
        },
        result.next_continuation_token,
    )
    return GetConversationsResponse(conversations=result.conversations, next_uri=next_uri)


@router.post("", response_model=StartConversationResult, status_code=status.HTTP_201_CREATED)
async def start_conversation(request: StartConversationRequest, service: ConversationService = Depends(get_conversation_service)):
    return await service.start_conversation(request)


@router.get("/{conversation_id}/messages", response_model=GetMessagesResponse)
async def get_messages(conversation_id: str, limit: Optional[int] = None, order_by: OrderBy = Query(OrderBy.DESC, alias="orderBy"), continuation_token: Optional[str] = Query(None, alias="continuationToken"), last_seen_message_time: int = Query(0, alias="lastSeenMessageTime"), service: ConversationService = Depends(get_conversation_service)):
    params = GetMessagesParams(
        limit=_page_size(limit),
        order=order_by,
        continuation_token=continuation_token,
        last_seen_message_time=last_seen_message_time,
    )
    result = await service.get_messages(conversation_id, params)
    next_uri = _next_uri(
        f"{router.prefix}/{conversation_id}/messages",
        {
            "limit": params.limit,
            "orderBy": order_by.value,
            "lastSeenMessageTime": last_seen_message_time,
        },
        result.next_continuation_token,
    )
    return GetMessagesResponse(messages=result.messages, next_uri=next_uri)


@router.post("/{conversation_id}/messages", response_model=SendMessageResult, status_code=status.HTTP_201_CREATED)
async def post_message(conversation_id: str, request: SendMessageRequest, service: ConversationService = Depends(get_conversation_service)):
    return await service.post_message(conversation_id, False, request)
