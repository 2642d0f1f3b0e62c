from fastapi import APIRouter, Depends, Query
from raqm.database.supabase_client import get_supabase
from raqm.modules.search.schemas import ProfileSearchResult
from raqm.modules.search.service import SearchService
from raqm.core.dependencies import get_verified_user
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/search", tags=["search"])


def get_search_service(supabase: Client = Depends(get_supabase)) -> SearchService:
    return SearchService(supabase)


@router.get("/profiles", response_model=List[ProfileSearchResult])
async def search_profiles(
    q: str = "",
    limit: Optional[int] = Query(None, ge=1, le=50),
    user: Dict = Depends(get_verified_user),
    service: SearchService = Depends(get_search_service)
):
    """Search users by plate number or name"""
    return service.search_profiles(user["id"], q, limit)
