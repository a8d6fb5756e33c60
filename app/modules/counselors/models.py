# Supabase tables: career_counselors, student_counselor_assignments, counseling_sessions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

career_counselors:
- id: uuid (primary key, references auth.users.id) - presence means the user is a counselor
- email: text
- name: text (not null)
- phone_number: text (nullable)
- age: int (nullable)
- country: text (nullable)
- experience_years: int (nullable)
- specialization: text (nullable) - comma separated
- linkedin_profile: text (nullable)
- bio: text (nullable)
- created_at: timestamp (default: now())

student_counselor_assignments:
- id: uuid (primary key)
- student_id: uuid (foreign key to profiles.id)
- counselor_id: uuid (foreign key to career_counselors.id)

counseling_sessions:
- id: uuid (primary key)
- student_id: uuid (foreign key to profiles.id)
- counselor_id: uuid (foreign key to career_counselors.id)
- session_date: date
- session_time: text
- duration: int - minutes
- meeting_link: text (nullable)
- status: text - scheduled | completed | cancelled
- notes: text (nullable)
"""
