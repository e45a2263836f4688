# Supabase table: web_templates
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: text (primary key) - generated as template_{epoch_ms}_{9 base36 chars}
- name: text (not null, max 100)
- description: text (not null, max 500)
- business_category: text (not null) - one of BUSINESS_CATEGORIES in schemas.py
- template_type: text (not null) - one of TEMPLATE_TYPES in schemas.py
- tags: text[] (default: {})
- s3_path: text (not null, unique) - web-templates/{id}
- preview_image: text (nullable)
- is_active: boolean (default: true) - false means soft-deleted
- is_public: boolean (default: true)
- custom_identity: text (nullable) - owner identity a private template is scoped to
- created_by: text (not null) - identity of the creating administrator
- has_index_html: boolean (default: false)
- file_count: integer (default: 0)
- total_size: bigint (default: 0)
- last_modified: timestamp (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
