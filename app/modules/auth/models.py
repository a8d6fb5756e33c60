# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required - Supabase Auth handles:
# - Magic link (email OTP) and Google OAuth sign-in
# - Session management and JWT issuance
# - The signup trigger that creates the matching profiles row

"""
Supabase Auth provides:
- auth.sign_in_with_otp() - Email a magic link
- auth.sign_in_with_oauth() - Start an OAuth flow (Google)
- auth.exchange_code_for_session() - Finish OAuth / magic link on /auth/callback
- auth.get_user() - Get current user from JWT token
- auth.admin.create_user() - Provision users for payments made before sign-up

app_metadata.type == "super_user" marks administrators (set server-side only).
"""
