from typing import TypedDict


class UserConversationDocument(TypedDict, total=False):
    _id: str
    # partition: username; id: conversation id
    pk: str
    id: str
    last_modified_unix_ms: int
