from typing import Optional

from chatservice.core.exceptions import InvalidArgumentError, InvalidUsernameError, UserNotFoundError
from chatservice.repositories.profile_repository import ProfileRepository
from chatservice.schemas.profile import Profile
from chatservice.utils.conversation_key import SEPARATOR


class ProfileService:
    """Profile operations, and the profile lookup the conversation service relies on"""

    def __init__(self, profile_repository: ProfileRepository):
        self.profile_repository = profile_repository

    async def add_profile(self, profile: Profile) -> Profile:
        """
        Register a new profile
        - Validate the required fields
        - Reject usernames containing the conversation id separator
        - Store the profile (ProfileExistsError when the username is taken)
        """
        if (
            not profile.username.strip()
            or not profile.first_name.strip()
            or not profile.last_name.strip()
        ):
            raise InvalidArgumentError(f"Invalid profile {profile!r}.")
        if SEPARATOR in profile.username:
            raise InvalidUsernameError(
                f"Username {profile.username} is invalid. Usernames cannot contain {SEPARATOR!r}."
            )

        await self.profile_repository.add_profile(profile)
        return profile

    async def get_profile(self, username: str) -> Profile:
        _validate_username(username)
        profile = await self.profile_repository.get_profile(username)
        if profile is None:
            raise UserNotFoundError(username)
        return profile

    async def find_profile(self, username: str) -> Optional[Profile]:
        _validate_username(username)
        return await self.profile_repository.get_profile(username)

    async def profile_exists(self, username: str) -> bool:
        _validate_username(username)
        return await self.profile_repository.profile_exists(username)

    async def delete_profile(self, username: str) -> None:
        """
        Delete a profile
        - UserNotFoundError if it does not exist
        """
        await self.get_profile(username)
        await self.profile_repository.delete_profile(username)


def _validate_username(username: str) -> None:
    if not username or not username.strip():
        raise InvalidArgumentError(f"Invalid username {username!r}.")
