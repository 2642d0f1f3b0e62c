from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from raqm.modules.profiles.schemas import ProfileSummary


class StoryResponse(BaseModel):
    id: str
    user_id: str
    image_url: str
    caption: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class StoryGroupResponse(BaseModel):
    user: Optional[ProfileSummary] = None
    stories: List[StoryResponse]
