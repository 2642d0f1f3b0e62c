from fastapi import APIRouter, Depends, File, Form, UploadFile
from raqm.database.supabase_client import get_supabase
from raqm.modules.stories.schemas import StoryResponse, StoryGroupResponse
from raqm.modules.stories.service import StoryService
from raqm.core.dependencies import get_verified_user
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/stories", tags=["stories"])


def get_story_service(supabase: Client = Depends(get_supabase)) -> StoryService:
    return StoryService(supabase)


@router.get("", response_model=List[StoryGroupResponse])
async def list_stories(
    user: Dict = Depends(get_verified_user),
    service: StoryService = Depends(get_story_service)
):
    """Stories from the last 24 hours, grouped by author"""
    return service.list_story_groups(user["id"])


@router.post("", response_model=StoryResponse, status_code=201)
async def create_story(
    image: Optional[UploadFile] = File(None),
    caption: Optional[str] = Form(None),
    user: Dict = Depends(get_verified_user),
    service: StoryService = Depends(get_story_service)
):
    return await service.create_story(user["id"], image, caption)


@router.delete("/{story_id}", status_code=204)
async def delete_story(
    story_id: str,
    user: Dict = Depends(get_verified_user),
    service: StoryService = Depends(get_story_service)
):
    service.delete_story(user["id"], story_id)
    return None
