from typing import List, Optional

from pydantic import Field

from chatservice.models.pagination import OrderBy
from chatservice.schemas.base import CamelModel
from chatservice.schemas.message import SendMessageRequest
from chatservice.schemas.profile import Profile


class UserConversation(CamelModel):
    """One participant's row in the per-user conversation index."""

    username: str
    conversation_id: str
    last_modified_unix_ms: int


class StartConversationRequest(CamelModel):

    participants: List[str]
    first_message: SendMessageRequest


class StartConversationResult(CamelModel):

    id: str
    created_at_unix_ms: int


class Conversation(CamelModel):

    id: str
    last_modified_unix_ms: int
    # None when the other participant's profile has since been deleted
    recipient: Optional[Profile] = None


class GetConversationsParams(CamelModel):

    limit: int = 10
    order: OrderBy = OrderBy.DESC
    continuation_token: Optional[str] = None
    last_seen_conversation_time: int = 0


class GetConversationsResult(CamelModel):

    conversations: List[Conversation] = Field(default_factory=list)
    next_continuation_token: Optional[str] = None


class GetConversationsResponse(CamelModel):

    conversations: List[Conversation] = Field(default_factory=list)
    next_uri: Optional[str] = None
