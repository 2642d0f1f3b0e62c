# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- plate_number: text (unique, not null) - stored upper-case, e.g. "AB 1234"
- full_name: text (not null)
- avatar_url: text (nullable)
- bio: text (nullable)
- phone_number: text (nullable)
- show_phone_number: boolean (default: false)
- is_mulkiya_verified: boolean (default: false)
- mulkiya_verified_at: timestamp (nullable)
- mulkiya_image_url: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
