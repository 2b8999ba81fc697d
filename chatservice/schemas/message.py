from typing import List, Optional

from pydantic import Field

from chatservice.models.pagination import OrderBy
from chatservice.schemas.base import CamelModel


class Message(CamelModel):

    id: str
    conversation_id: str
    sender_username: str
    text: str
    created_at_unix_ms: int


class SendMessageRequest(CamelModel):

    id: str
    sender_username: str
    text: str


class SendMessageResult(CamelModel):

    created_at_unix_ms: int


class GetMessagesParams(CamelModel):

    limit: int = 10
    order: OrderBy = OrderBy.DESC
    continuation_token: Optional[str] = None
    last_seen_message_time: int = 0


class GetMessagesResult(CamelModel):

    messages: List[Message] = Field(default_factory=list)
    next_continuation_token: Optional[str] = None


class GetMessagesResponse(CamelModel):

    messages: List[Message] = Field(default_factory=list)
    next_uri: Optional[str] = None
