from typing import TypedDict


class MessageDocument(TypedDict, total=False):
    _id: str
    # partition: conversation id
    pk: str
    id: str
    sender_username: str
    text: str
    created_at_unix_ms: int
