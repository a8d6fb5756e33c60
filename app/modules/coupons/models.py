# Supabase table: coupons
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- code: text (unique, not null) - matched exactly, case-sensitive
- discount_type: text (nullable) - e.g. 'fixed', 'percent'
- discount_value: numeric (nullable)
- uses: int (default: 0)
- max_uses: int (nullable) - null or 0 means unlimited
- expires_at: timestamptz (nullable)
- created_at: timestamp (default: now())

Rows are created out of band and never deleted here. Codes listed in
VALID_COUPON_CODES are accepted even without a row (legacy codes); their
usage is not counted.
"""
