# Supabase tables: chats, chat_participants, messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

chats:
- id: uuid (primary key)
- participant_ids: uuid[] (not null) - both members of a direct chat
- unread_count: integer (default: 0) - messages sent since the chat was last opened
- created_at: timestamp (default: now())
- updated_at: timestamp - time of the latest message

chat_participants:
- id: uuid (primary key)
- chat_id: uuid (foreign key to chats.id, not null)
- user_id: uuid (foreign key to profiles.id, not null)

messages:
- id: uuid (primary key)
- chat_id: uuid (foreign key to chats.id, not null)
- user_id: uuid (foreign key to profiles.id, not null) - sender
- content: text (not null)
- is_read: boolean (default: false)
- created_at: timestamp (default: now())

Realtime: INSERTs on messages feed the per-chat and inbox WebSockets.
"""
