from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from chatservice.core.exceptions import ProfileExistsError
from chatservice.database.document_store import DocumentConflictError, DocumentStore
from chatservice.models.profile import ProfileDocument
from chatservice.schemas.profile import Profile


class ProfileRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._store = DocumentStore(db, "profiles")

    async def add_profile(self, profile: Profile) -> None:
        try:
            await self._store.create(
                profile.username,
                profile.username,
                {
                    "first_name": profile.first_name,
                    "last_name": profile.last_name,
                    "profile_picture_id": profile.profile_picture_id,
                },
            )
        except DocumentConflictError:
            raise ProfileExistsError(profile.username) from None

    async def get_profile(self, username: str) -> Optional[Profile]:
        doc = await self._store.read(username, username)
        return _to_profile(doc) if doc else None

    async def profile_exists(self, username: str) -> bool:
        return await self.get_profile(username) is not None

    async def delete_profile(self, username: str) -> None:
        await self._store.delete(username, username)


def _to_profile(doc: ProfileDocument) -> Profile:
    return Profile(
        username=doc["id"],
        first_name=doc["first_name"],
        last_name=doc["last_name"],
        profile_picture_id=doc.get("profile_picture_id"),
    )
