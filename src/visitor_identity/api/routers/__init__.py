"""
visitor_identity.api.routers

HTTP routers: health, identity issuance, metadata.
"""
