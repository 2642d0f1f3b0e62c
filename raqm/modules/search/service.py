import logging
import re
from supabase import Client
from raqm.config import settings
from raqm.modules.search.schemas import ProfileSearchResult
from raqm.modules.follows.service import FollowService
from typing import List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)

# Characters with meaning inside a PostgREST or=(...) filter or an ilike pattern
_FILTER_METACHARS = re.compile(r"[,()%*\\:\"]")


def sanitize_query(query: str) -> str:
    return " ".join(_FILTER_METACHARS.sub(" ", query or "").split())


class SearchService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.follows = FollowService(supabase)

    def search_profiles(self, user_id: str, query: str, limit: Optional[int] = None) -> List[ProfileSearchResult]:
        """Profiles whose plate number or name contains the query, excluding the searcher"""
        term = sanitize_query(query)
        if not term:
            return []
        try:
            result = self.supabase.table("profiles")\
                .select("id, plate_number, full_name, avatar_url")\
                .or_(f"plate_number.ilike.%{term}%,full_name.ilike.%{term}%")\
                .neq("id", user_id)\
                .limit(limit or settings.search_limit)\
                .execute()
            profiles = result.data or []
            followed = self.follows.following_set(user_id, [p["id"] for p in profiles])
            return [ProfileSearchResult(**p, is_following=p["id"] in followed) for p in profiles]
        except Exception as e:
            logger.error(f"Search failed for '{term}': {e}")
            raise HTTPException(status_code=500, detail="Search failed")
