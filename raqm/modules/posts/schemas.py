from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from raqm.modules.profiles.schemas import ProfileSummary


class PostResponse(BaseModel):
    id: str
    user_id: str
    content: Optional[str] = None
    image_url: Optional[str] = None
    likes_count: int = 0
    comments_count: int = 0
    created_at: datetime
    profile: Optional[ProfileSummary] = None
    is_liked: bool = False

    class Config:
        from_attributes = True


class LikeResponse(BaseModel):
    post_id: str
    liked: bool
    likes_count: int
