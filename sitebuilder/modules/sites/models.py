# Supabase table: users (profile)
# Only the column below is touched by this service

"""
- id: uuid (primary key, matches auth.users.id)
- site_url: text (nullable) - serving URL of the user's index.html, written after each successful site deployment

Site files themselves live in object storage under sites/{identity}/.
"""
