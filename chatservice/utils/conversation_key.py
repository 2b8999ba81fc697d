from typing import Tuple

from chatservice.core.exceptions import InvalidArgumentError


# Usernames may not contain this; enforced when profiles are created.
SEPARATOR = "_"


def derive_conversation_id(username_a: str, username_b: str) -> str:
    """Order-independent id of the two-party conversation between a and b."""
    for username in (username_a, username_b):
        if not username or not username.strip():
            raise InvalidArgumentError(f"Invalid username {username!r}.")
        if SEPARATOR in username:
            raise InvalidArgumentError(
                f"Invalid username {username!r}. Usernames cannot contain {SEPARATOR!r}."
            )
    if username_a == username_b:
        raise InvalidArgumentError(
            f"A conversation needs two distinct participants, got {username_a!r} twice."
        )
    first, second = sorted([username_a, username_b])
    return f"{first}{SEPARATOR}{second}"


def split_conversation_id(conversation_id: str) -> Tuple[str, str]:
    if not conversation_id or conversation_id.count(SEPARATOR) != 1:
        raise InvalidArgumentError(f"Invalid conversationId {conversation_id!r}.")
    username_a, username_b = conversation_id.split(SEPARATOR)
    if not username_a.strip() or not username_b.strip():
        raise InvalidArgumentError(f"Invalid conversationId {conversation_id!r}.")
    return username_a, username_b


def other_participant(conversation_id: str, username: str) -> str:
    username_a, username_b = split_conversation_id(conversation_id)
    if username == username_a:
        return username_b
    if username == username_b:
        return username_a
    raise InvalidArgumentError(
        f"User {username!r} is not a participant of conversation {conversation_id!r}."
    )
