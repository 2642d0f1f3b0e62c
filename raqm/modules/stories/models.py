# Supabase table: stories
# Storage bucket: story_images (public)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

stories:
- id: uuid (primary key)
- user_id: uuid (foreign key to profiles.id, not null)
- image_url: text (not null) - public URL in the story_images bucket
- caption: text (nullable)
- expires_at: timestamp (not null) - created_at + 24h
- created_at: timestamp (default: now())
"""
