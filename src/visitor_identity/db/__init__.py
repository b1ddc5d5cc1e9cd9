"""
visitor_identity.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide the ORM model backing the SQL KVStore, engine/session setup, and repositories.
"""

# Package marker.
