"""
visitor_identity.auth

Browser-facing credential handling.

Responsibilities:
- Signed cookie jar (tamper-evident cookies).
- Refresh-token codec tying a browser back to a principal.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Nothing here touches key material; it only moves principals in and out of cookies.
