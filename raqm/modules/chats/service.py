import logging
import uuid
from datetime import datetime, timezone
from supabase import Client
from raqm.modules.chats.schemas import (
    MessageCreate, MessageResponse, ChatResponse, StartChatResponse, ChatSummaryResponse
)
from raqm.modules.profiles.service import ProfileService
from typing import Any, Dict, List, Optional, Set
from fastapi import HTTPException

logger = logging.getLogger(__name__)


def other_participant_id(chat: Dict[str, Any], user_id: str) -> Optional[str]:
    for participant_id in chat.get("participant_ids") or []:
        if participant_id != user_id:
            return participant_id
    return None


class ChatService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.profiles = ProfileService(supabase)

    def _get_chat_row(self, chat_id: str) -> Dict[str, Any]:
        result = self.supabase.table("chats")\
            .select("*")\
            .eq("id", chat_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Chat not found")
        return result.data[0]

    def get_participant_chat(self, user_id: str, chat_id: str) -> Dict[str, Any]:
        """Chat row, provided user_id is one of its participants"""
        chat = self._get_chat_row(chat_id)
        if user_id not in (chat.get("participant_ids") or []):
            raise HTTPException(status_code=403, detail="You are not a participant of this chat")
        return chat

    def _chat_response(self, chat: Dict[str, Any], user_id: str, cls=ChatResponse, **extra):
        other_id = other_participant_id(chat, user_id)
        other = self.profiles.get_summaries([other_id]).get(other_id) if other_id else None
        return cls(**chat, other_participant=other, **extra)

    def list_chats(self, user_id: str) -> List[ChatSummaryResponse]:
        """User's chats with the other participant, last message and unread count, newest first"""
        try:
            result = self.supabase.table("chats")\
                .select("*")\
                .contains("participant_ids", [user_id])\
                .order("updated_at", desc=True)\
                .execute()
            chats = result.data or []
            if not chats:
                return []

            messages_result = self.supabase.table("messages")\
                .select("*")\
                .in_("chat_id", [chat["id"] for chat in chats])\
                .order("created_at", desc=True)\
                .execute()
            last_messages: Dict[str, Dict[str, Any]] = {}
            unread: Dict[str, int] = {}
            for message in messages_result.data or []:
                last_messages.setdefault(message["chat_id"], message)
                if message["user_id"] != user_id and not message.get("is_read"):
                    unread[message["chat_id"]] = unread.get(message["chat_id"], 0) + 1

            others = self.profiles.get_summaries(
                [other_participant_id(chat, user_id) for chat in chats]
            )
            summaries = []
            for chat in chats:
                other = others.get(other_participant_id(chat, user_id))
                if not other:
                    continue
                last = last_messages.get(chat["id"])
                summaries.append(ChatSummaryResponse(
                    **{**chat, "unread_count": unread.get(chat["id"], 0)},
                    other_participant=other,
                    last_message=MessageResponse(**last) if last else None,
                ))
            return summaries
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching chats for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def start_chat(self, user_id: str, other_user_id: str) -> StartChatResponse:
        """Return the direct chat between two users, creating it on first contact"""
        if user_id == other_user_id:
            raise HTTPException(status_code=400, detail="You cannot start a chat with yourself")
        try:
            self.profiles.get_profile(other_user_id)

            existing = self.supabase.table("chats")\
                .select("*")\
                .contains("participant_ids", [user_id, other_user_id])\
                .execute()
            for chat in existing.data or []:
                if len(chat.get("participant_ids") or []) == 2:
                    return self._chat_response(chat, user_id, StartChatResponse, created=False)

            now = datetime.now(timezone.utc).isoformat()
            chat_id = str(uuid.uuid4())
            result = self.supabase.table("chats").insert({
                "id": chat_id,
                "participant_ids": [user_id, other_user_id],
                "unread_count": 0,
                "created_at": now,
                "updated_at": now
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to start conversation")

            self.supabase.table("chat_participants").insert([
                {"chat_id": chat_id, "user_id": user_id},
                {"chat_id": chat_id, "user_id": other_user_id}
            ]).execute()

            logger.info(f"Chat {chat_id} started between {user_id} and {other_user_id}")
            return self._chat_response(result.data[0], user_id, StartChatResponse, created=True)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error starting chat with {other_user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_chat(self, user_id: str, chat_id: str) -> ChatResponse:
        try:
            chat = self.get_participant_chat(user_id, chat_id)
            response = self._chat_response(chat, user_id)
            if response.other_participant is None:
                raise HTTPException(status_code=404, detail="Unable to load chat participant")
            return response
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_messages(self, user_id: str, chat_id: str) -> List[MessageResponse]:
        """Messages oldest first; opening the chat marks the other side's messages read"""
        try:
            self.get_participant_chat(user_id, chat_id)
            result = self.supabase.table("messages")\
                .select("*")\
                .eq("chat_id", chat_id)\
                .order("created_at")\
                .execute()
            messages = result.data or []

            if any(not m.get("is_read") and m["user_id"] != user_id for m in messages):
                self.supabase.table("messages")\
                    .update({"is_read": True})\
                    .eq("chat_id", chat_id)\
                    .neq("user_id", user_id)\
                    .eq("is_read", False)\
                    .execute()
                self.supabase.table("chats")\
                    .update({"unread_count": 0})\
                    .eq("id", chat_id)\
                    .execute()

            self.profiles.attach_profiles(messages)
            return [MessageResponse(**m) for m in messages]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching messages for chat {chat_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def send_message(self, user_id: str, chat_id: str, message: MessageCreate) -> MessageResponse:
        """Insert a message and bump the chat; client_id is echoed back for reconciliation"""
        content = message.content.strip()
        if not content:
            raise HTTPException(status_code=400, detail="Message cannot be empty")
        try:
            chat = self.get_participant_chat(user_id, chat_id)
            now = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("messages").insert({
                "chat_id": chat_id,
                "user_id": user_id,
                "content": content,
                "is_read": False,
                "created_at": now
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to send message")

            self.supabase.table("chats")\
                .update({
                    "updated_at": now,
                    "unread_count": (chat.get("unread_count") or 0) + 1
                })\
                .eq("id", chat_id)\
                .execute()

            row = result.data[0]
            self.profiles.attach_profiles([row])
            return MessageResponse(**row, client_id=message.client_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error sending message to chat {chat_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def user_chat_ids(self, user_id: str) -> Set[str]:
        result = self.supabase.table("chats")\
            .select("id")\
            .contains("participant_ids", [user_id])\
            .execute()
        return {row["id"] for row in result.data or []}

    def message_event(self, record: Dict[str, Any], viewer_id: str) -> Dict[str, Any]:
        """Realtime payload for a new message in an open chat; delivery to the recipient marks it read"""
        row = dict(record)
        if row.get("user_id") != viewer_id and not row.get("is_read"):
            try:
                self.supabase.table("messages")\
                    .update({"is_read": True})\
                    .eq("id", row["id"])\
                    .execute()
                row["is_read"] = True
            except Exception as e:
                logger.error(f"Error marking message {row.get('id')} as read: {e}")
        self.profiles.attach_profiles([row])
        return {"type": "message", "message": MessageResponse(**row)}

    def inbox_event(
        self,
        record: Dict[str, Any],
        viewer_id: str,
        chat_ids: Set[str],
        foreign_ids: Set[str]
    ) -> Optional[Dict[str, Any]]:
        """Chat-list update for a message in one of the viewer's chats, else None.

        `chat_ids` and `foreign_ids` are the socket's memberships and known
        non-memberships; membership is re-queried only for chat ids in neither.
        """
        chat_id = record.get("chat_id")
        if chat_id in foreign_ids:
            return None
        if chat_id not in chat_ids:
            # Chats started after the socket opened
            chat_ids.update(self.user_chat_ids(viewer_id))
            if chat_id not in chat_ids:
                foreign_ids.add(chat_id)
                return None
        return {
            "type": "chat_update",
            "chat_id": chat_id,
            "last_message": MessageResponse(**record),
            "updated_at": record.get("created_at"),
            "unread_increment": 0 if record.get("user_id") == viewer_id else 1,
        }
