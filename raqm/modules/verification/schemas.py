from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class VerificationStatus(BaseModel):
    user_id: str
    plate_number: str
    is_mulkiya_verified: bool = False
    mulkiya_verified_at: Optional[datetime] = None
    mulkiya_image_url: Optional[str] = None
