"""
Ensure Storage Buckets Script
Creates the public Supabase Storage buckets used for post, story and
Mulkiya images. Safe to run repeatedly; existing buckets are left alone.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from raqm.config import settings
from raqm.database.supabase_client import get_supabase
from raqm.storage.media import MediaStorage
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

BUCKETS = [
    settings.post_images_bucket,
    settings.story_images_bucket,
    settings.mulkiya_bucket,
]


def ensure_buckets(supabase: Client) -> int:
    """Create missing buckets; returns how many were checked successfully"""
    storage = MediaStorage(supabase)
    ok = 0
    for bucket in BUCKETS:
        try:
            storage.ensure_bucket(bucket)
            logger.info(f"Bucket ready: {bucket}")
            ok += 1
        except Exception as e:
            logger.error(f"Error ensuring bucket {bucket}: {e}")
    return ok


def main():
    if settings.s3_configured:
        logger.info("S3 is configured for media; Supabase buckets are not used")
        return
    supabase = get_supabase()
    ok = ensure_buckets(supabase)
    logger.info(f"{ok}/{len(BUCKETS)} buckets ready")
    if ok != len(BUCKETS):
        sys.exit(1)


if __name__ == "__main__":
    main()
