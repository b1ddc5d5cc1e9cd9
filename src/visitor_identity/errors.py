"""
visitor_identity.errors

Failure taxonomy for the identity subsystem.

Responsibilities:
- Give every layer a shared base (`IdentityError`) so the API can map failures
  to one opaque server error.
- Keep "no token" out of this module: an absent or expired refresh token is a
  normal branch, not an exception.
"""

from __future__ import annotations


class IdentityError(Exception):
    pass


class StorageError(IdentityError):
    """KV backend unreachable or failed."""


class DecodeError(IdentityError):
    """Stored text is not valid for the expected shape."""


class KeyDecodeError(DecodeError):
    """Stored key material could not be imported."""


class EncodeError(IdentityError):
    pass


class SigningError(IdentityError):
    pass


class AuthorizationError(IdentityError):
    """Caller could not prove control of the target principal."""
