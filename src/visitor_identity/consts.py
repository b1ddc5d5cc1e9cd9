"""
visitor_identity.consts

Fixed identity lifetimes and storage/cookie names.
"""

from __future__ import annotations

from datetime import timedelta

# Delegation expiry, 7 days
DELEGATION_EXPIRY = timedelta(days=7)
# Refresh expiry, 30 days
REFRESH_EXPIRY = timedelta(days=30)

REFRESH_TOKEN_COOKIE = "user-identity"
METADATA_KEY_SUFFIX = "-metadata"
