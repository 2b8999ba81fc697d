from fastapi import APIRouter, Depends, Response, status

from chatservice.database.connection import mongo_db_dependency
from chatservice.repositories.profile_repository import ProfileRepository
from chatservice.schemas.profile import Profile
from chatservice.services.profile_service import ProfileService


router = APIRouter(prefix="/profile", tags=["profiles"])


def get_profile_service(db = Depends(mongo_db_dependency)) -> ProfileService:
    return ProfileService(ProfileRepository(db))


@router.post("", response_model=Profile, status_code=status.HTTP_201_CREATED)
async def add_profile(profile: Profile, service: ProfileService = Depends(get_profile_service)):
    return await service.add_profile(profile)


@router.get("/{username}", response_model=Profile)
async def get_profile(username: str, service: ProfileService = Depends(get_profile_service)):
    return await service.get_profile(username)


@router.delete("/{username}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(username: str, service: ProfileService = Depends(get_profile_service)):
    await service.delete_profile(username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
