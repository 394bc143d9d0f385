"""
Per-domain repository modules for database access.

Every function takes the session first and scopes its queries to the
caller's ``user_id``; rows owned by another user behave as missing.
"""
