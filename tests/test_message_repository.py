import pytest

from chatservice.core.exceptions import (
    InvalidArgumentError,
    InvalidCursorError,
    MessageExistsError,
    MessageNotFoundError,
)
from chatservice.models.pagination import OrderBy
from chatservice.schemas.message import Message


CONVERSATION_ID = "alice_bob"


def make_message(message_id: str, created_at: int, sender: str = "alice", text: str = "hi") -> Message:
    return Message(
        id=message_id,
        conversation_id=CONVERSATION_ID,
        sender_username=sender,
        text=text,
        created_at_unix_ms=created_at,
    )


async def add_messages(repo, count: int):
    messages = [make_message(f"m{i}", 1000 + i) for i in range(count)]
    for message in messages:
        await repo.add_message(CONVERSATION_ID, message)
    return messages


async def test_add_then_get(message_repo):
    message = make_message("m1", 1000)
    await message_repo.add_message(CONVERSATION_ID, message)

    assert await message_repo.get_message(CONVERSATION_ID, "m1") == message


async def test_get_missing_message_returns_none(message_repo):
    assert await message_repo.get_message(CONVERSATION_ID, "nope") is None


async def test_add_duplicate_raises_and_keeps_original(message_repo):
    await message_repo.add_message(CONVERSATION_ID, make_message("m1", 1000, text="first"))

    with pytest.raises(MessageExistsError):
        await message_repo.add_message(CONVERSATION_ID, make_message("m1", 2000, text="second"))

    stored = await message_repo.get_message(CONVERSATION_ID, "m1")
    assert stored.text == "first"
    assert stored.created_at_unix_ms == 1000


async def test_same_message_id_in_other_conversation_is_independent(message_repo):
    await message_repo.add_message(CONVERSATION_ID, make_message("m1", 1000))
    await message_repo.add_message("alice_carol", make_message("m1", 1000).model_copy(update={"conversation_id": "alice_carol"}))

    assert await message_repo.get_message("alice_carol", "m1") is not None


@pytest.mark.parametrize(
    "conversation_id, message",
    [
        ("", make_message("m1", 1000)),
        ("  ", make_message("m1", 1000)),
        (CONVERSATION_ID, make_message(" ", 1000)),
        (CONVERSATION_ID, make_message("m1", 1000, sender="")),
        (CONVERSATION_ID, make_message("m1", 1000, text=" ")),
        (CONVERSATION_ID, make_message("m1", -1)),
    ],
)
async def test_add_rejects_invalid_input(message_repo, conversation_id, message):
    with pytest.raises(InvalidArgumentError):
        await message_repo.add_message(conversation_id, message)


async def test_conversation_exists_follows_message_presence(message_repo):
    assert not await message_repo.conversation_exists(CONVERSATION_ID)

    await message_repo.add_message(CONVERSATION_ID, make_message("m1", 1000))
    assert await message_repo.conversation_exists(CONVERSATION_ID)

    await message_repo.delete_message(CONVERSATION_ID, "m1")
    assert not await message_repo.conversation_exists(CONVERSATION_ID)


async def test_delete_is_idempotent(message_repo):
    await message_repo.delete_message(CONVERSATION_ID, "never-existed")


async def test_update_message_time_changes_only_timestamp(message_repo):
    await message_repo.add_message(CONVERSATION_ID, make_message("m1", 1000, text="hello"))

    await message_repo.update_message_time(CONVERSATION_ID, "m1", 5000)

    stored = await message_repo.get_message(CONVERSATION_ID, "m1")
    assert stored.created_at_unix_ms == 5000
    assert stored.text == "hello"


async def test_update_message_time_of_missing_message(message_repo):
    with pytest.raises(MessageNotFoundError):
        await message_repo.update_message_time(CONVERSATION_ID, "m1", 5000)


@pytest.mark.parametrize("order", [OrderBy.ASC, OrderBy.DESC])
async def test_paging_with_limit_one_visits_every_message_once(message_repo, order):
    messages = await add_messages(message_repo, 5)

    seen = []
    cursor = None
    while True:
        page, cursor = await message_repo.get_messages(CONVERSATION_ID, limit=1, order=order, cursor=cursor)
        seen.extend(page)
        if cursor is None:
            break

    expected = messages if order is OrderBy.ASC else list(reversed(messages))
    assert [m.id for m in seen] == [m.id for m in expected]


async def test_no_cursor_when_page_holds_everything(message_repo):
    await add_messages(message_repo, 3)

    page, cursor = await message_repo.get_messages(CONVERSATION_ID, limit=3)

    assert len(page) == 3
    assert cursor is None


async def test_since_filters_older_messages(message_repo):
    await add_messages(message_repo, 5)

    page, _ = await message_repo.get_messages(CONVERSATION_ID, limit=10, order=OrderBy.ASC, since_unix_ms=1002)

    assert [m.id for m in page] == ["m3", "m4"]


async def test_cursor_survives_inserts_in_seen_positions(message_repo):
    await add_messages(message_repo, 4)

    first, cursor = await message_repo.get_messages(CONVERSATION_ID, limit=2, order=OrderBy.ASC)
    # lands before the cursor position, must not show up on the next page
    await message_repo.add_message(CONVERSATION_ID, make_message("early", 999))
    second, cursor = await message_repo.get_messages(CONVERSATION_ID, limit=2, order=OrderBy.ASC, cursor=cursor)

    assert [m.id for m in first] == ["m0", "m1"]
    assert [m.id for m in second] == ["m2", "m3"]
    assert cursor is None


async def test_equal_timestamps_are_paged_without_duplicates(message_repo):
    for message_id in ["a", "b", "c"]:
        await message_repo.add_message(CONVERSATION_ID, make_message(message_id, 1000))

    seen = []
    cursor = None
    while True:
        page, cursor = await message_repo.get_messages(CONVERSATION_ID, limit=1, cursor=cursor)
        seen.extend(m.id for m in page)
        if cursor is None:
            break

    assert sorted(seen) == ["a", "b", "c"]


async def test_cursor_from_other_query_shape_is_rejected(message_repo):
    await add_messages(message_repo, 3)
    _, cursor = await message_repo.get_messages(CONVERSATION_ID, limit=1, order=OrderBy.ASC)

    with pytest.raises(InvalidCursorError):
        await message_repo.get_messages(CONVERSATION_ID, limit=1, order=OrderBy.DESC, cursor=cursor)
    with pytest.raises(InvalidCursorError):
        await message_repo.get_messages(CONVERSATION_ID, limit=1, cursor="not-a-cursor")


@pytest.mark.parametrize("limit, since", [(0, 0), (-1, 0), (10, -1)])
async def test_get_messages_rejects_invalid_paging(message_repo, limit, since):
    with pytest.raises(InvalidArgumentError):
        await message_repo.get_messages(CONVERSATION_ID, limit=limit, since_unix_ms=since)
