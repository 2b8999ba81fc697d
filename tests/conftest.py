import uuid

import pytest
from mongomock_motor import AsyncMongoMockClient

from chatservice.repositories.message_repository import MessageRepository
from chatservice.repositories.profile_repository import ProfileRepository
from chatservice.repositories.user_conversation_repository import UserConversationRepository
from chatservice.schemas.profile import Profile
from chatservice.services.conversation_service import ConversationService
from chatservice.services.profile_service import ProfileService


class StepClock:
    """Deterministic epoch-millisecond clock advancing one second per read."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


@pytest.fixture()
def db():
    """A fresh in-memory database for every test."""
    return AsyncMongoMockClient()[f"chat_test_{uuid.uuid4().hex}"]


@pytest.fixture()
def clock():
    return StepClock()


@pytest.fixture()
def message_repo(db):
    return MessageRepository(db)


@pytest.fixture()
def user_conversation_repo(db):
    return UserConversationRepository(db)


@pytest.fixture()
def profile_service(db):
    return ProfileService(ProfileRepository(db))


@pytest.fixture()
def conversation_service(message_repo, user_conversation_repo, profile_service, clock):
    return ConversationService(message_repo, user_conversation_repo, profile_service, clock=clock)


@pytest.fixture()
async def profiles(profile_service):
    """alice, bob and carol exist; nobody else does."""
    created = {}
    for username, first, last in [("alice", "Alice", "Smith"), ("bob", "Bob", "Jones"), ("carol", "Carol", "White")]:
        created[username] = await profile_service.add_profile(
            Profile(username=username, first_name=first, last_name=last)
        )
    return created
