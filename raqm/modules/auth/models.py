# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - User registration (auth.users table)
# - Email confirmation
# - JWT access/refresh token issuing and validation

"""
Supabase Auth calls used here:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.refresh_session() - Exchange a refresh token for a new session
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

Application data for a user (plate number, Mulkiya status, ...) lives in the
profiles table, created at registration time. See modules/profiles/models.py.
"""
