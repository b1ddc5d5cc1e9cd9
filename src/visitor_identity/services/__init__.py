"""
visitor_identity.services

Identity lifecycle services.

Responsibilities:
- Resolve or create base identities (`resolver`).
- Issue delegations and refresh cookies (`issuer`).
- Guard per-principal metadata (`metadata`).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services take every collaborator (KV, cookie jar, header sink, clock value) as
# explicit arguments; only the API layer knows where they come from.
