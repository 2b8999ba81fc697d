import pytest

from chatservice.core.exceptions import InvalidArgumentError, InvalidCursorError
from chatservice.models.pagination import OrderBy
from chatservice.schemas.conversation import UserConversation


def entry(username: str, conversation_id: str, last_modified: int) -> UserConversation:
    return UserConversation(username=username, conversation_id=conversation_id, last_modified_unix_ms=last_modified)


async def test_upsert_creates_then_replaces(user_conversation_repo):
    await user_conversation_repo.upsert_user_conversation(entry("alice", "alice_bob", 1000))
    await user_conversation_repo.upsert_user_conversation(entry("alice", "alice_bob", 2000))

    stored = await user_conversation_repo.get_user_conversation("alice", "alice_bob")
    page, _ = await user_conversation_repo.get_user_conversations("alice", limit=10)

    assert stored == entry("alice", "alice_bob", 2000)
    assert page == [stored]


async def test_get_missing_entry_returns_none(user_conversation_repo):
    assert await user_conversation_repo.get_user_conversation("alice", "alice_bob") is None


@pytest.mark.parametrize(
    "bad_entry",
    [entry("", "alice_bob", 1), entry("alice", " ", 1), entry("alice", "alice_bob", -1)],
)
async def test_upsert_rejects_invalid_entries(user_conversation_repo, bad_entry):
    with pytest.raises(InvalidArgumentError):
        await user_conversation_repo.upsert_user_conversation(bad_entry)


async def test_listing_is_scoped_to_one_user(user_conversation_repo):
    await user_conversation_repo.upsert_user_conversation(entry("alice", "alice_bob", 1000))
    await user_conversation_repo.upsert_user_conversation(entry("bob", "alice_bob", 1000))
    await user_conversation_repo.upsert_user_conversation(entry("bob", "bob_carol", 2000))

    page, _ = await user_conversation_repo.get_user_conversations("alice", limit=10)

    assert [e.conversation_id for e in page] == ["alice_bob"]


async def test_listing_orders_by_last_modified(user_conversation_repo):
    await user_conversation_repo.upsert_user_conversation(entry("alice", "alice_bob", 3000))
    await user_conversation_repo.upsert_user_conversation(entry("alice", "alice_carol", 1000))
    await user_conversation_repo.upsert_user_conversation(entry("alice", "alice_dave", 2000))

    desc, _ = await user_conversation_repo.get_user_conversations("alice", limit=10)
    asc, _ = await user_conversation_repo.get_user_conversations("alice", limit=10, order=OrderBy.ASC)

    assert [e.conversation_id for e in desc] == ["alice_bob", "alice_dave", "alice_carol"]
    assert [e.conversation_id for e in asc] == ["alice_carol", "alice_dave", "alice_bob"]


async def test_paging_follows_cursor_to_the_end(user_conversation_repo):
    for i, other in enumerate(["bob", "carol", "dave", "erin", "frank"]):
        await user_conversation_repo.upsert_user_conversation(entry("alice", f"alice_{other}", 1000 + i))

    pages = []
    cursor = None
    while True:
        page, cursor = await user_conversation_repo.get_user_conversations("alice", limit=2, cursor=cursor)
        pages.append([e.conversation_id for e in page])
        if cursor is None:
            break

    assert pages == [["alice_frank", "alice_erin"], ["alice_dave", "alice_carol"], ["alice_bob"]]


async def test_since_filters_entries(user_conversation_repo):
    await user_conversation_repo.upsert_user_conversation(entry("alice", "alice_bob", 1000))
    await user_conversation_repo.upsert_user_conversation(entry("alice", "alice_carol", 2000))

    page, _ = await user_conversation_repo.get_user_conversations("alice", limit=10, since_unix_ms=1000)

    assert [e.conversation_id for e in page] == ["alice_carol"]


async def test_cursor_of_other_user_is_rejected(user_conversation_repo):
    for other in ["bob", "carol"]:
        await user_conversation_repo.upsert_user_conversation(entry("alice", f"alice_{other}", 1000))
    _, cursor = await user_conversation_repo.get_user_conversations("alice", limit=1)

    with pytest.raises(InvalidCursorError):
        await user_conversation_repo.get_user_conversations("bob", limit=1, cursor=cursor)


async def test_delete_is_idempotent(user_conversation_repo):
    await user_conversation_repo.upsert_user_conversation(entry("alice", "alice_bob", 1000))

    await user_conversation_repo.delete_user_conversation("alice", "alice_bob")
    await user_conversation_repo.delete_user_conversation("alice", "alice_bob")

    assert await user_conversation_repo.get_user_conversation("alice", "alice_bob") is None


@pytest.mark.parametrize("username, limit, since", [(" ", 10, 0), ("alice", 0, 0), ("alice", 10, -5)])
async def test_listing_rejects_invalid_arguments(user_conversation_repo, username, limit, since):
    with pytest.raises(InvalidArgumentError):
        await user_conversation_repo.get_user_conversations(username, limit=limit, since_unix_ms=since)
