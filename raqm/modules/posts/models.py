# Supabase tables: posts, likes
# Storage bucket: post_images (public)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

posts:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- content: text (may be empty when image_url is set)
- image_url: text (nullable) - public URL in the post_images bucket
- likes_count: integer (default: 0)
- comments_count: integer (default: 0)
- created_at: timestamp (default: now())

likes:
- id: uuid (primary key)
- post_id: uuid (foreign key to posts.id, not null)
- user_id: uuid (foreign key to profiles.id, not null)
- created_at: timestamp (default: now())
- unique constraint on (post_id, user_id)

Realtime: INSERTs on posts are published to the feed WebSocket.
"""
