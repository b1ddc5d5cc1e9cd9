"""
visitor_identity.api

API package for the visitor identity service.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring and request/response models.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer stays thin: it builds collaborators from the request and hands
# them to `visitor_identity.services`.
