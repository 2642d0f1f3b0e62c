import logging
from datetime import datetime, timezone
from supabase import Client
from raqm.modules.profiles.schemas import ProfileUpdate, ProfileResponse, ProfileDetailResponse
from raqm.modules.follows.service import FollowService
from typing import Any, Dict, List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

PROFILE_SUMMARY_COLUMNS = "id, plate_number, full_name, avatar_url"


def normalize_plate_number(plate_number: str) -> str:
    """Canonical plate form: upper-case, single spaces"""
    return " ".join((plate_number or "").split()).upper()


def compact_plate_number(plate_number: str) -> str:
    """Plate number without separators, for comparing against scanned documents"""
    return "".join(ch for ch in normalize_plate_number(plate_number) if ch not in " -")


def public_view(profile: Dict[str, Any], viewer_id: Optional[str]) -> Dict[str, Any]:
    """Hide the phone number from other users unless the owner chose to show it"""
    data = dict(profile)
    if data.get("id") != viewer_id and not data.get("show_phone_number"):
        data["phone_number"] = None
    return data


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile(self, user_id: str) -> Dict[str, Any]:
        result = self.supabase.table("profiles")\
            .select("*")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Profile not found")
        return result.data[0]

    def get_profile_by_plate(self, plate_number: str) -> Dict[str, Any]:
        result = self.supabase.table("profiles")\
            .select("*")\
            .eq("plate_number", normalize_plate_number(plate_number))\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Profile not found")
        return result.data[0]

    def get_profile_detail(self, plate_number: str, viewer_id: str) -> ProfileDetailResponse:
        """Profile page: profile, follower counts and whether the viewer follows it"""
        try:
            profile = self.get_profile_by_plate(plate_number)
            follows = FollowService(self.supabase)
            followers_count, following_count = follows.counts(profile["id"])
            is_own = profile["id"] == viewer_id
            return ProfileDetailResponse(
                **public_view(profile, viewer_id),
                followers_count=followers_count,
                following_count=following_count,
                is_following=False if is_own else follows.is_following(viewer_id, profile["id"]),
                is_own_profile=is_own,
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error loading profile {plate_number}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update the caller's own profile"""
        try:
            # Fields sent as null are cleared; omitted fields are left alone
            update_data = profile_data.model_dump(exclude_unset=True)
            if "full_name" in update_data:
                full_name = (update_data["full_name"] or "").strip()
                if not full_name:
                    raise HTTPException(status_code=400, detail="Full name cannot be empty")
                update_data["full_name"] = full_name
            if update_data.get("show_phone_number", False) is None:
                update_data["show_phone_number"] = False
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_summaries(self, user_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        """Map user_id -> author summary for the given ids"""
        ids = list({uid for uid in user_ids if uid})
        if not ids:
            return {}
        result = self.supabase.table("profiles")\
            .select(PROFILE_SUMMARY_COLUMNS)\
            .in_("id", ids)\
            .execute()
        return {p["id"]: p for p in result.data or []}

    def attach_profiles(
        self,
        rows: List[Dict[str, Any]],
        key: str = "user_id",
        target: str = "profile"
    ) -> List[Dict[str, Any]]:
        """Attach the author summary of each row under `target`"""
        summaries = self.get_summaries([row.get(key) for row in rows])
        for row in rows:
            row[target] = summaries.get(row.get(key))
        return rows
