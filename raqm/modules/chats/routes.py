from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket
from raqm.database.supabase_client import get_supabase
from raqm.modules.chats.schemas import (
    MessageCreate, MessageResponse, StartChatRequest, ChatResponse, StartChatResponse, ChatSummaryResponse
)
from raqm.modules.chats.service import ChatService
from raqm.modules.auth.service import AuthService
from raqm.core.dependencies import get_verified_user, get_auth_service, authenticate_websocket, reject_websocket
from raqm.core.realtime import RealtimeHub, get_realtime_hub, forward_events
from supabase import Client
from typing import List, Dict, Set

router = APIRouter(prefix="/chats", tags=["chats"])


def get_chat_service(supabase: Client = Depends(get_supabase)) -> ChatService:
    return ChatService(supabase)


@router.get("", response_model=List[ChatSummaryResponse])
async def list_chats(
    user: Dict = Depends(get_verified_user),
    service: ChatService = Depends(get_chat_service)
):
    """Conversations of the current user, most recently active first"""
    return service.list_chats(user["id"])


@router.post("", response_model=StartChatResponse)
async def start_chat(
    request: StartChatRequest,
    user: Dict = Depends(get_verified_user),
    service: ChatService = Depends(get_chat_service)
):
    """Open the direct chat with another user, creating it if needed"""
    return service.start_chat(user["id"], request.user_id)


@router.websocket("/ws")
async def inbox_socket(
    websocket: WebSocket,
    token: str = Query(...),
    supabase: Client = Depends(get_supabase),
    auth_service: AuthService = Depends(get_auth_service),
    hub: RealtimeHub = Depends(get_realtime_hub)
):
    """Chat-list updates for every new message in the user's chats"""
    try:
        user = authenticate_websocket(token, auth_service, supabase)
    except HTTPException as e:
        await reject_websocket(websocket, e)
        return
    service = ChatService(supabase)
    chat_ids = service.user_chat_ids(user["id"])
    foreign_ids: Set[str] = set()
    await websocket.accept()
    async with hub.subscribe("public-messages", "messages") as queue:
        await forward_events(websocket, queue, lambda record: service.inbox_event(record, user["id"], chat_ids, foreign_ids))


@router.get("/{chat_id}", response_model=ChatResponse)
async def get_chat(
    chat_id: str,
    user: Dict = Depends(get_verified_user),
    service: ChatService = Depends(get_chat_service)
):
    return service.get_chat(user["id"], chat_id)


@router.get("/{chat_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    chat_id: str,
    user: Dict = Depends(get_verified_user),
    service: ChatService = Depends(get_chat_service)
):
    """Chat history, oldest first; marks incoming messages as read"""
    return service.list_messages(user["id"], chat_id)


@router.post("/{chat_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    chat_id: str,
    message: MessageCreate,
    user: Dict = Depends(get_verified_user),
    service: ChatService = Depends(get_chat_service)
):
    return service.send_message(user["id"], chat_id, message)


@router.websocket("/{chat_id}/ws")
async def chat_socket(
    websocket: WebSocket,
    chat_id: str,
    token: str = Query(...),
    supabase: Client = Depends(get_supabase),
    auth_service: AuthService = Depends(get_auth_service),
    hub: RealtimeHub = Depends(get_realtime_hub)
):
    """Live messages of one chat"""
    service = ChatService(supabase)
    try:
        user = authenticate_websocket(token, auth_service, supabase)
        service.get_participant_chat(user["id"], chat_id)
    except HTTPException as e:
        await reject_websocket(websocket, e)
        return
    await websocket.accept()
    async with hub.subscribe(f"chat-{chat_id}", "messages", filter=f"chat_id=eq.{chat_id}") as queue:
        await forward_events(websocket, queue, lambda record: service.message_event(record, user["id"]))
