from fastapi import APIRouter, Depends
from raqm.database.supabase_client import get_supabase
from raqm.modules.profiles.schemas import ProfileUpdate, ProfileResponse, ProfileDetailResponse
from raqm.modules.profiles.service import ProfileService
from raqm.modules.posts.schemas import PostResponse
from raqm.modules.posts.service import PostService
from raqm.core.dependencies import get_verified_user
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    profile: Dict = Depends(get_verified_user)
):
    return ProfileResponse(**profile)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    profile: Dict = Depends(get_verified_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Update your own profile"""
    return service.update_profile(profile["id"], profile_data)


@router.get("/{plate_number}", response_model=ProfileDetailResponse)
async def get_profile(
    plate_number: str,
    user: Dict = Depends(get_verified_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Profile page by plate number, with follower counts"""
    return service.get_profile_detail(plate_number, user["id"])


@router.get("/{plate_number}/posts", response_model=List[PostResponse])
async def list_profile_posts(
    plate_number: str,
    user: Dict = Depends(get_verified_user),
    supabase: Client = Depends(get_supabase),
    service: ProfileService = Depends(get_profile_service)
):
    """Posts by the profile owner, newest first"""
    profile = service.get_profile_by_plate(plate_number)
    return PostService(supabase).list_user_posts(profile["id"], user["id"])
