import logging
from supabase import Client
from raqm.modules.follows.schemas import FollowStatus
from typing import Any, Dict, Iterable, List, Set, Tuple
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class FollowService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def is_following(self, follower_id: str, following_id: str) -> bool:
        result = self.supabase.table("follows")\
            .select("id")\
            .eq("follower_id", follower_id)\
            .eq("following_id", following_id)\
            .limit(1)\
            .execute()
        return bool(result.data)

    def following_ids(self, user_id: str) -> List[str]:
        """Ids of the users `user_id` follows"""
        result = self.supabase.table("follows")\
            .select("following_id")\
            .eq("follower_id", user_id)\
            .execute()
        return [row["following_id"] for row in result.data or []]

    def following_set(self, user_id: str, candidate_ids: Iterable[str]) -> Set[str]:
        """Subset of candidate_ids followed by user_id, in one query"""
        ids = list(candidate_ids)
        if not ids:
            return set()
        result = self.supabase.table("follows")\
            .select("following_id")\
            .eq("follower_id", user_id)\
            .in_("following_id", ids)\
            .execute()
        return {row["following_id"] for row in result.data or []}

    def counts(self, user_id: str) -> Tuple[int, int]:
        """(followers, following) for a user"""
        followers = self.supabase.table("follows")\
            .select("id", count="exact")\
            .eq("following_id", user_id)\
            .execute()
        following = self.supabase.table("follows")\
            .select("id", count="exact")\
            .eq("follower_id", user_id)\
            .execute()
        return followers.count or 0, following.count or 0

    def _status(self, user_id: str, is_following: bool) -> FollowStatus:
        followers_count, following_count = self.counts(user_id)
        return FollowStatus(
            user_id=user_id,
            is_following=is_following,
            followers_count=followers_count,
            following_count=following_count,
        )

    def _ensure_profile_exists(self, user_id: str) -> None:
        result = self.supabase.table("profiles")\
            .select("id")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="User not found")

    def follow(self, follower_id: str, following_id: str) -> FollowStatus:
        """Follow a user; following someone already followed is a no-op"""
        if follower_id == following_id:
            raise HTTPException(status_code=400, detail="You cannot follow yourself")
        try:
            self._ensure_profile_exists(following_id)
            if not self.is_following(follower_id, following_id):
                self.supabase.table("follows").insert({
                    "follower_id": follower_id,
                    "following_id": following_id
                }).execute()
                logger.info(f"{follower_id} followed {following_id}")
            return self._status(following_id, True)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error following {following_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def unfollow(self, follower_id: str, following_id: str) -> FollowStatus:
        try:
            self.supabase.table("follows")\
                .delete()\
                .eq("follower_id", follower_id)\
                .eq("following_id", following_id)\
                .execute()
            return self._status(following_id, False)
        except Exception as e:
            logger.error(f"Error unfollowing {following_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def _profiles_for(self, user_ids: List[str]) -> List[Dict[str, Any]]:
        if not user_ids:
            return []
        result = self.supabase.table("profiles")\
            .select("id, plate_number, full_name, avatar_url")\
            .in_("id", user_ids)\
            .order("plate_number")\
            .execute()
        return result.data or []

    def list_followers(self, user_id: str) -> List[Dict[str, Any]]:
        try:
            result = self.supabase.table("follows")\
                .select("follower_id")\
                .eq("following_id", user_id)\
                .execute()
            return self._profiles_for([row["follower_id"] for row in result.data or []])
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_following(self, user_id: str) -> List[Dict[str, Any]]:
        try:
            return self._profiles_for(self.following_ids(user_id))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
