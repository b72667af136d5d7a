"""Burial lease bookkeeping (expiration, renewal)."""
