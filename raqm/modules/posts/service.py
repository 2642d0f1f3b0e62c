from supabase import Client
from raqm.config import settings
from raqm.modules.posts.schemas import PostResponse, LikeResponse
from raqm.modules.profiles.service import ProfileService
from raqm.modules.follows.service import FollowService
from raqm.storage.media import MediaStorage
from typing import Any, Dict, List, Optional, Set
from fastapi import HTTPException, UploadFile
import logging

logger = logging.getLogger(__name__)


class PostService:
    def __init__(self, supabase: Client, media: Optional[MediaStorage] = None):
        self.supabase = supabase
        self.media = media or MediaStorage(supabase)
        self.profiles = ProfileService(supabase)
        self.follows = FollowService(supabase)

    def _liked_post_ids(self, user_id: str, post_ids: List[str]) -> Set[str]:
        if not post_ids:
            return set()
        result = self.supabase.table("likes")\
            .select("post_id")\
            .eq("user_id", user_id)\
            .in_("post_id", post_ids)\
            .execute()
        return {row["post_id"] for row in result.data or []}

    def _to_responses(self, rows: List[Dict[str, Any]], viewer_id: str) -> List[PostResponse]:
        self.profiles.attach_profiles(rows)
        liked = self._liked_post_ids(viewer_id, [row["id"] for row in rows])
        return [PostResponse(**row, is_liked=row["id"] in liked) for row in rows]

    def _get_post_row(self, post_id: str) -> Dict[str, Any]:
        result = self.supabase.table("posts")\
            .select("*")\
            .eq("id", post_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Post not found")
        return result.data[0]

    async def create_post(
        self,
        user_id: str,
        content: Optional[str],
        image: Optional[UploadFile] = None
    ) -> PostResponse:
        """Create a post with text, an image, or both"""
        content = (content or "").strip()
        has_image = image is not None and bool(image.filename)
        if not content and not has_image:
            raise HTTPException(status_code=400, detail="Please add some content or an image")

        image_url = None
        if has_image:
            image_url = await self.media.store_upload(settings.post_images_bucket, user_id, image)

        try:
            result = self.supabase.table("posts").insert({
                "user_id": user_id,
                "content": content,
                "image_url": image_url,
                "likes_count": 0,
                "comments_count": 0
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create post")

            logger.info(f"Post {result.data[0]['id']} created by {user_id}")
            return self._to_responses([result.data[0]], user_id)[0]
        except HTTPException:
            raise
        except Exception as e:
            if image_url:
                self.media.remove(settings.post_images_bucket, image_url)
            logger.error(f"Error creating post: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def feed(self, user_id: str, limit: Optional[int] = None) -> List[PostResponse]:
        """Newest posts from followed users and the user's own"""
        try:
            author_ids = self.follows.following_ids(user_id) + [user_id]
            result = self.supabase.table("posts")\
                .select("*")\
                .in_("user_id", author_ids)\
                .order("created_at", desc=True)\
                .limit(limit or settings.feed_limit)\
                .execute()
            return self._to_responses(result.data or [], user_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching feed for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_user_posts(self, author_id: str, viewer_id: str) -> List[PostResponse]:
        try:
            result = self.supabase.table("posts")\
                .select("*")\
                .eq("user_id", author_id)\
                .order("created_at", desc=True)\
                .execute()
            return self._to_responses(result.data or [], viewer_id)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_post(self, post_id: str, viewer_id: str) -> PostResponse:
        try:
            return self._to_responses([self._get_post_row(post_id)], viewer_id)[0]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def toggle_like(self, user_id: str, post_id: str) -> LikeResponse:
        """Like the post, or unlike it when already liked"""
        try:
            post = self._get_post_row(post_id)
            existing = self.supabase.table("likes")\
                .select("id")\
                .eq("post_id", post_id)\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()

            likes_count = post.get("likes_count") or 0
            if existing.data:
                self.supabase.table("likes")\
                    .delete()\
                    .eq("post_id", post_id)\
                    .eq("user_id", user_id)\
                    .execute()
                likes_count = max(likes_count - 1, 0)
                liked = False
            else:
                self.supabase.table("likes")\
                    .insert({"post_id": post_id, "user_id": user_id})\
                    .execute()
                likes_count += 1
                liked = True

            self.supabase.table("posts")\
                .update({"likes_count": likes_count})\
                .eq("id", post_id)\
                .execute()

            return LikeResponse(post_id=post_id, liked=liked, likes_count=likes_count)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error liking post {post_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def delete_post(self, user_id: str, post_id: str) -> bool:
        """Delete one of the user's own posts"""
        try:
            post = self._get_post_row(post_id)
            if post["user_id"] != user_id:
                raise HTTPException(status_code=404, detail="Post not found")

            self.supabase.table("likes")\
                .delete()\
                .eq("post_id", post_id)\
                .execute()

            result = self.supabase.table("posts")\
                .delete()\
                .eq("id", post_id)\
                .eq("user_id", user_id)\
                .execute()

            if post.get("image_url"):
                self.media.remove(settings.post_images_bucket, post["image_url"])
            return len(result.data) > 0
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting post {post_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def feed_event(self, record: Dict[str, Any], audience: Set[str]) -> Optional[Dict[str, Any]]:
        """Realtime payload for a newly inserted post, or None if the viewer does not follow its author"""
        if record.get("user_id") not in audience:
            return None
        row = dict(record)
        self.profiles.attach_profiles([row])
        return {"type": "post", "post": PostResponse(**row)}
