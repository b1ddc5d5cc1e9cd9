"""
visitor_identity.identity

Cryptographic identity domain.

Responsibilities:
- Principals, secp256k1 identities, delegations and the client wire bundle.
"""

# Package marker; import from submodules directly.
