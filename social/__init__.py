"""social/ -- Posts and profiles: the two aggregates members edit.

Layer rule: social/ imports from core/ only. It does NOT import from api/ or
auth/; the caller's identity arrives as a plain user id string.
"""
