from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, WebSocket
from raqm.database.supabase_client import get_supabase
from raqm.modules.posts.schemas import PostResponse, LikeResponse
from raqm.modules.posts.service import PostService
from raqm.core.dependencies import get_verified_user, get_auth_service, authenticate_websocket, reject_websocket
from raqm.core.realtime import RealtimeHub, get_realtime_hub, forward_events
from raqm.modules.auth.service import AuthService
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/posts", tags=["posts"])


def get_post_service(supabase: Client = Depends(get_supabase)) -> PostService:
    return PostService(supabase)


@router.post("", response_model=PostResponse, status_code=201)
async def create_post(
    content: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    user: Dict = Depends(get_verified_user),
    service: PostService = Depends(get_post_service)
):
    """Create a post (multipart form: content and/or image)"""
    return await service.create_post(user["id"], content, image)


@router.get("/feed", response_model=List[PostResponse])
async def get_feed(
    limit: Optional[int] = Query(None, ge=1, le=100),
    user: Dict = Depends(get_verified_user),
    service: PostService = Depends(get_post_service)
):
    """Latest posts from people the user follows, plus their own"""
    return service.feed(user["id"], limit)


@router.websocket("/feed/ws")
async def feed_socket(
    websocket: WebSocket,
    token: str = Query(...),
    supabase: Client = Depends(get_supabase),
    auth_service: AuthService = Depends(get_auth_service),
    hub: RealtimeHub = Depends(get_realtime_hub)
):
    """Push new posts from followed users as they are created"""
    try:
        user = authenticate_websocket(token, auth_service, supabase)
    except HTTPException as e:
        await reject_websocket(websocket, e)
        return
    service = PostService(supabase)
    audience = set(service.follows.following_ids(user["id"])) | {user["id"]}
    await websocket.accept()
    async with hub.subscribe("public:posts", "posts") as queue:
        await forward_events(websocket, queue, lambda record: service.feed_event(record, audience))


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: str,
    user: Dict = Depends(get_verified_user),
    service: PostService = Depends(get_post_service)
):
    return service.get_post(post_id, user["id"])


@router.post("/{post_id}/like", response_model=LikeResponse)
async def toggle_like(
    post_id: str,
    user: Dict = Depends(get_verified_user),
    service: PostService = Depends(get_post_service)
):
    """Like a post, or remove the like if already liked"""
    return service.toggle_like(user["id"], post_id)


@router.delete("/{post_id}", status_code=204)
async def delete_post(
    post_id: str,
    user: Dict = Depends(get_verified_user),
    service: PostService = Depends(get_post_service)
):
    """Delete one of your own posts"""
    service.delete_post(user["id"], post_id)
    return None
