from pydantic import BaseModel


class FollowStatus(BaseModel):
    user_id: str
    is_following: bool
    followers_count: int
    following_count: int
