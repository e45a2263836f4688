# Supabase tables: widget_settings, contact_messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Settings of the embeddable widgets a site can include (contact form,
image gallery, shop open/closed badge). Widgets read their settings
anonymously by site owner identity.

Expected Supabase table structure for widget_settings:
- owner: text (not null) - site owner identity (10-digit mobile number)
- widget: text (not null) - values: contact-us, image-gallery, shop-status
- settings: jsonb (not null) - serialized settings model of the widget (schemas.py)
- updated_at: timestamp (nullable)
- primary key (owner, widget)

Expected Supabase table structure for contact_messages:
- id: uuid (primary key)
- owner: text (not null) - identity of the site the form was submitted on
- form_data: jsonb (not null) - field name -> submitted value
- submitted_at: timestamp (not null)
- ip_address: text (nullable) - first X-Forwarded-For hop, X-Real-IP, or peer address
- user_agent: text (nullable)
- is_read: boolean (default: false)

Recommended index:
- contact_messages (owner, submitted_at desc)
"""
