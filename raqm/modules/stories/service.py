from datetime import datetime, timedelta, timezone
from supabase import Client
from raqm.config import settings
from raqm.modules.stories.schemas import StoryResponse, StoryGroupResponse
from raqm.modules.profiles.service import ProfileService
from raqm.modules.follows.service import FollowService
from raqm.storage.media import MediaStorage
from typing import Any, Dict, List, Optional
from fastapi import HTTPException, UploadFile
import logging

logger = logging.getLogger(__name__)


def group_by_author(stories: List[Dict[str, Any]], profiles: Dict[str, Dict[str, Any]]) -> List[StoryGroupResponse]:
    """Group stories per author, keeping the order in which authors first appear"""
    groups: Dict[str, StoryGroupResponse] = {}
    for story in stories:
        user_id = story["user_id"]
        if user_id not in groups:
            groups[user_id] = StoryGroupResponse(user=profiles.get(user_id), stories=[])
        groups[user_id].stories.append(StoryResponse(**story))
    return list(groups.values())


class StoryService:
    def __init__(self, supabase: Client, media: Optional[MediaStorage] = None):
        self.supabase = supabase
        self.media = media or MediaStorage(supabase)
        self.profiles = ProfileService(supabase)
        self.follows = FollowService(supabase)

    async def create_story(
        self,
        user_id: str,
        image: Optional[UploadFile],
        caption: Optional[str] = None
    ) -> StoryResponse:
        """Upload an image story that expires after the configured TTL"""
        if image is None or not image.filename:
            raise HTTPException(status_code=400, detail="Please select an image")

        image_url = await self.media.store_upload(settings.story_images_bucket, user_id, image)
        expires_at = datetime.now(timezone.utc) + timedelta(hours=settings.story_ttl_hours)
        try:
            result = self.supabase.table("stories").insert({
                "user_id": user_id,
                "image_url": image_url,
                "caption": (caption or "").strip() or None,
                "expires_at": expires_at.isoformat()
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create story")

            logger.info(f"Story {result.data[0]['id']} created by {user_id}")
            return StoryResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            self.media.remove(settings.story_images_bucket, image_url)
            logger.error(f"Error creating story: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_story_groups(self, user_id: str) -> List[StoryGroupResponse]:
        """Recent stories of followed users and the user's own, grouped per author"""
        try:
            author_ids = self.follows.following_ids(user_id) + [user_id]
            since = datetime.now(timezone.utc) - timedelta(hours=settings.story_ttl_hours)
            result = self.supabase.table("stories")\
                .select("*")\
                .in_("user_id", author_ids)\
                .gte("created_at", since.isoformat())\
                .order("created_at", desc=True)\
                .execute()
            stories = result.data or []
            profiles = self.profiles.get_summaries([s["user_id"] for s in stories])
            return group_by_author(stories, profiles)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching stories for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_story(self, user_id: str, story_id: str) -> bool:
        """Delete one of the user's own stories"""
        try:
            result = self.supabase.table("stories")\
                .select("*")\
                .eq("id", story_id)\
                .limit(1)\
                .execute()
            if not result.data or result.data[0]["user_id"] != user_id:
                raise HTTPException(status_code=404, detail="Story not found")

            self.supabase.table("stories")\
                .delete()\
                .eq("id", story_id)\
                .eq("user_id", user_id)\
                .execute()
            self.media.remove(settings.story_images_bucket, result.data[0]["image_url"])
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
