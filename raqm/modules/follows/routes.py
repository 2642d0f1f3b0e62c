from fastapi import APIRouter, Depends
from raqm.database.supabase_client import get_supabase
from raqm.modules.follows.schemas import FollowStatus
from raqm.modules.follows.service import FollowService
from raqm.modules.profiles.schemas import ProfileSummary
from raqm.core.dependencies import get_verified_user
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/follows", tags=["follows"])


def get_follow_service(supabase: Client = Depends(get_supabase)) -> FollowService:
    return FollowService(supabase)


@router.post("/{user_id}", response_model=FollowStatus)
async def follow_user(
    user_id: str,
    user: Dict = Depends(get_verified_user),
    service: FollowService = Depends(get_follow_service)
):
    """Follow a user"""
    return service.follow(user["id"], user_id)


@router.delete("/{user_id}", response_model=FollowStatus)
async def unfollow_user(
    user_id: str,
    user: Dict = Depends(get_verified_user),
    service: FollowService = Depends(get_follow_service)
):
    """Stop following a user"""
    return service.unfollow(user["id"], user_id)


@router.get("/{user_id}/followers", response_model=List[ProfileSummary])
async def list_followers(
    user_id: str,
    user: Dict = Depends(get_verified_user),
    service: FollowService = Depends(get_follow_service)
):
    return service.list_followers(user_id)


@router.get("/{user_id}/following", response_model=List[ProfileSummary])
async def list_following(
    user_id: str,
    user: Dict = Depends(get_verified_user),
    service: FollowService = Depends(get_follow_service)
):
    return service.list_following(user_id)
