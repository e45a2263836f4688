# Supabase table: site_deployments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
One row per multi-step storage mutation (a deployment intent), written
before the first object is touched.

Expected Supabase table structure:
- id: uuid (primary key)
- target_prefix: text (not null) - sites/{identity}/ or web-templates/{template_id}/
- kind: text (not null) - values: site_archive, template_archive, site_from_template
- template_id: text (nullable) - source template (site_from_template) or target template (template_archive)
- source: text (nullable) - uploaded filename or source template prefix
- requested_by: text (not null) - caller identity
- status: text (not null, default: 'pending') - values: pending, committed, failed, rolled_back
- phase: text (nullable) - values: started, writing. 'writing' once the target is cleared (or needed no clearing)
  and new objects may exist; recovery only clears site prefixes in this phase
- expected_files: integer (nullable) - number of distinct files the deployment writes
- file_count: integer (nullable)
- error_message: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Recommended constraint:
- unique index on (target_prefix) where status = 'pending'
  A violation on insert is reported to the caller as 409.
"""
