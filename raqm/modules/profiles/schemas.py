from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ProfileSummary(BaseModel):
    id: str
    plate_number: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    phone_number: Optional[str] = None
    show_phone_number: Optional[bool] = None


class ProfileResponse(BaseModel):
    id: str
    plate_number: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    phone_number: Optional[str] = None
    show_phone_number: bool = False
    is_mulkiya_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileDetailResponse(ProfileResponse):
    followers_count: int = 0
    following_count: int = 0
    is_following: bool = False
    is_own_profile: bool = False
