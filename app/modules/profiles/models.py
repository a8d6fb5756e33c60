# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (nullable) - synced from auth.users by the signup trigger
- name: text (nullable)
- phone_number: text (nullable) - captured by the phone prompt or the payment webhook
- age: int (nullable)
- atp_done: boolean (default: false) - assessment completed
- payment_done: boolean (default: false) - paid or redeemed a coupon
- coupon_code: text (nullable) - last redeemed coupon
- payment_id: text (nullable) - Razorpay payment id
- amount_paid: numeric (nullable) - rupees
- welcome_email_sent: boolean (default: false)
- created_at: timestamp (default: now())

Note: the row is created by a trigger on auth.users insert. Role selection and
phone capture upsert it so that a missing trigger never blocks onboarding.
"""
