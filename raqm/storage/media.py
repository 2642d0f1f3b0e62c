"""Image uploads for posts, stories and Mulkiya documents.

Objects go to Supabase Storage (public buckets, created on first use) unless
S3 credentials are configured, in which case every bucket becomes a key
prefix inside the single S3 bucket.
"""
import logging
import os
import uuid
from typing import Optional, Set

from fastapi import HTTPException, UploadFile
from supabase import Client

from raqm.config import settings
from raqm.storage.s3_storage import S3Storage

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "jpg"


def file_extension(filename: Optional[str]) -> str:
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    return ext or DEFAULT_EXTENSION


class MediaStorage:
    # Buckets already confirmed to exist in this process
    _known_buckets: Set[str] = set()

    def __init__(self, supabase: Client, s3_storage: Optional[S3Storage] = None):
        self.supabase = supabase
        self.s3_storage = s3_storage
        if self.s3_storage is None and settings.s3_configured:
            try:
                self.s3_storage = S3Storage()
            except Exception as e:
                logger.warning(f"S3 storage initialization failed ({str(e)}), will use Supabase Storage")

    async def read_image(self, file: UploadFile) -> bytes:
        """Read an uploaded image, rejecting non-images and oversized files"""
        if not file.content_type or not file.content_type.startswith("image/"):
            raise HTTPException(status_code=400, detail="Only image files are accepted")
        content = await file.read()
        if not content:
            raise HTTPException(status_code=400, detail="Uploaded file is empty")
        if len(content) > settings.max_upload_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"Image exceeds the {settings.max_upload_mb} MB limit"
            )
        return content

    def ensure_bucket(self, bucket: str) -> None:
        """Create a public bucket if it does not exist yet"""
        if bucket in self._known_buckets:
            return
        buckets = self.supabase.storage.list_buckets()
        names = {b.name for b in buckets}
        if bucket not in names:
            logger.info(f"Bucket '{bucket}' does not exist, creating it")
            self.supabase.storage.create_bucket(bucket, options={"public": True})
        self._known_buckets.add(bucket)

    def upload_image(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        """Store an image and return its public URL"""
        if self.s3_storage:
            try:
                return self.s3_storage.upload_file(content, f"{bucket}/{path}", content_type)
            except Exception as e:
                raise HTTPException(status_code=500, detail=f"Failed to upload to S3: {str(e)}")
        try:
            self.ensure_bucket(bucket)
            self.supabase.storage.from_(bucket).upload(
                path,
                content,
                file_options={"content-type": content_type}
            )
            url = self.supabase.storage.from_(bucket).get_public_url(path)
            logger.info(f"Uploaded {path} to bucket {bucket}")
            return url.rstrip("?")
        except Exception as e:
            logger.error(f"Supabase Storage upload failed: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Failed to upload to storage: {str(e)}")

    async def store_upload(self, bucket: str, owner_id: str, file: UploadFile) -> str:
        """Validate an upload and store it under {owner_id}/{uuid}.{ext}"""
        content = await self.read_image(file)
        path = f"{owner_id}/{uuid.uuid4()}.{file_extension(file.filename)}"
        return self.upload_image(bucket, path, content, file.content_type)

    def remove(self, bucket: str, url: str) -> bool:
        """Best-effort delete of a previously uploaded object"""
        try:
            if self.s3_storage:
                return self.s3_storage.delete_file(self.s3_storage.key_from_url(url))
            marker = f"/object/public/{bucket}/"
            path = url.split(marker, 1)[1] if marker in url else url
            self.supabase.storage.from_(bucket).remove([path])
            return True
        except Exception as e:
            logger.warning(f"Failed to delete {url} from bucket {bucket}: {e}")
            return False
