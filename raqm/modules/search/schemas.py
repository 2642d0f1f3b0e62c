from pydantic import BaseModel
from typing import Optional


class ProfileSearchResult(BaseModel):
    id: str
    plate_number: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    is_following: bool = False
