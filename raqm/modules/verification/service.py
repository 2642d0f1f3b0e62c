import logging
import uuid
from datetime import datetime, timezone
from supabase import Client
from raqm.config import settings
from raqm.modules.verification.schemas import VerificationStatus
from raqm.modules.profiles.service import compact_plate_number
from raqm.storage.media import MediaStorage, file_extension
from typing import Any, Dict, Optional
from fastapi import HTTPException, UploadFile

logger = logging.getLogger(__name__)


class VerificationService:
    def __init__(self, supabase: Client, media: Optional[MediaStorage] = None):
        self.supabase = supabase
        self.media = media or MediaStorage(supabase)

    def status(self, profile: Dict[str, Any]) -> VerificationStatus:
        return VerificationStatus(user_id=profile["id"], **profile)

    async def verify(
        self,
        profile: Dict[str, Any],
        image: Optional[UploadFile],
        plate_number: Optional[str] = None
    ) -> VerificationStatus:
        """Store the Mulkiya photo and mark the profile verified.

        There is no OCR step: a plate number read off the card by the client,
        when supplied, must match the registered one.
        """
        if image is None or not image.filename:
            raise HTTPException(status_code=400, detail="Please capture or upload an image of your Mulkiya ID")
        if plate_number and compact_plate_number(plate_number) != compact_plate_number(profile["plate_number"]):
            raise HTTPException(
                status_code=400,
                detail="Plate number on the Mulkiya does not match your registered plate number"
            )

        content = await self.media.read_image(image)
        path = f"mulkiya_{profile['id']}_{uuid.uuid4()}.{file_extension(image.filename)}"
        image_url = self.media.upload_image(settings.mulkiya_bucket, path, content, image.content_type)

        try:
            result = self.supabase.table("profiles")\
                .update({
                    "is_mulkiya_verified": True,
                    "mulkiya_verified_at": datetime.now(timezone.utc).isoformat(),
                    "mulkiya_image_url": image_url
                })\
                .eq("id", profile["id"])\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")
            logger.info(f"Mulkiya verified for user {profile['id']}")
            return self.status(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error verifying Mulkiya for {profile['id']}: {e}")
            raise HTTPException(status_code=500, detail=f"Error verifying Mulkiya: {str(e)}")
