# Supabase Auth
# This module uses Supabase's built-in authentication system
# No custom tables are required for identities.

"""
Fields read from auth.users:
- id: uuid
- email: text
- user_metadata.mobile_number: text - owner key of the user's site prefix (sites/{mobile_number}/)
- app_metadata.role: text - one of admin | devops | manager | user (server-side only)
- app_metadata.type: text - "super_user" is treated as role admin

Supabase Auth provides:
- auth.sign_up() - Register new users (mobile_number stored in user_metadata)
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
"""
