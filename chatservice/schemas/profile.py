from typing import Optional

from chatservice.schemas.base import CamelModel


class Profile(CamelModel):

    username: str
    first_name: str
    last_name: str
    profile_picture_id: Optional[str] = None
