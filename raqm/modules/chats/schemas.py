from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from raqm.modules.profiles.schemas import ProfileSummary


class MessageCreate(BaseModel):
    content: str
    client_id: Optional[str] = None  # temporary id of the sender's optimistic copy


class MessageResponse(BaseModel):
    id: str
    chat_id: str
    user_id: str
    content: str
    is_read: bool = False
    created_at: datetime
    profile: Optional[ProfileSummary] = None
    client_id: Optional[str] = None

    class Config:
        from_attributes = True


class StartChatRequest(BaseModel):
    user_id: str


class ChatResponse(BaseModel):
    id: str
    participant_ids: List[str]
    other_participant: Optional[ProfileSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StartChatResponse(ChatResponse):
    created: bool = False


class ChatSummaryResponse(ChatResponse):
    last_message: Optional[MessageResponse] = None
    unread_count: int = 0
