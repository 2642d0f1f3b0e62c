# Mulkiya (vehicle registration card) verification
# Storage bucket: mulkiya-verifications (public)
# Columns live on the profiles table, see modules/profiles/models.py:
# - is_mulkiya_verified: boolean
# - mulkiya_verified_at: timestamp
# - mulkiya_image_url: text
