from typing import Optional, TypedDict


class ProfileDocument(TypedDict, total=False):

    _id: str
    # partition and id are both the username
    pk: str
    id: str
    first_name: str
    last_name: str
    profile_picture_id: Optional[str]
