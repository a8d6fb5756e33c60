# Supabase table: reports
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- student_id: uuid (foreign key to profiles.id, not null)
- counselor_id: uuid (foreign key to career_counselors.id, not null)
- email: text - student email the counselor addressed the report to
- report_url: text - public URL of the PDF in the reports storage bucket
- report_summary: jsonb - structured summary shown on the student's report page
- created_at: timestamp (default: now())

At most one row per (student_id, counselor_id); uploads update it in place.
"""
