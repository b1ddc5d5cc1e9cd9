"""
visitor_identity.identity.keys

secp256k1 identities and their key material.

Responsibilities:
- Generate keypairs from the OS CSPRNG (via `cryptography`).
- Export/import private keys as JSON Web Keys (via PyJWT's EC algorithm).
- Produce and verify compact low-S ECDSA/SHA-256 signatures.
- Model the closed identity set: `BaseIdentity | SessionIdentity`.

Security:
- `repr()` only shows the principal, never key material.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Self

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)
from jwt.algorithms import ECAlgorithm
from jwt.exceptions import InvalidKeyError

from visitor_identity.errors import KeyDecodeError, SigningError
from visitor_identity.identity.principal import Principal

if TYPE_CHECKING:
    from visitor_identity.identity.delegation import Delegation

_CURVE_NAME = "secp256k1"
# Group order of secp256k1; signatures are normalized to s <= n/2.
_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_HALF_ORDER = _ORDER // 2
_SCALAR_LEN = 32


class Secp256k1Identity:
    __slots__ = ("_private_key", "_public_key_der", "_principal")

    def __init__(self, private_key: ec.EllipticCurvePrivateKey) -> None:
        if private_key.curve.name != _CURVE_NAME:
            raise KeyDecodeError(f"unsupported curve: {private_key.curve.name}")
        self._private_key = private_key
        self._public_key_der = private_key.public_key().public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        self._principal = Principal.self_authenticating(self._public_key_der)

    @classmethod
    def generate(cls) -> Self:
        return cls(ec.generate_private_key(ec.SECP256K1()))

    @classmethod
    def from_jwk(cls, jwk: str | dict[str, Any]) -> Self:
        """
        Import a private JWK (string or parsed document).

        Raises:
            KeyDecodeError: malformed JWK, wrong curve, or a public-only key.
        """
        try:
            key = ECAlgorithm.from_jwk(jwk)
        except (InvalidKeyError, ValueError, TypeError, KeyError) as e:
            raise KeyDecodeError(f"invalid JWK: {e}") from e
        if not isinstance(key, ec.EllipticCurvePrivateKey):
            raise KeyDecodeError("JWK carries no private key")
        return cls(key)

    def to_jwk(self) -> str:
        return ECAlgorithm.to_jwk(self._private_key)

    def to_jwk_dict(self) -> dict[str, Any]:
        return json.loads(self.to_jwk())

    def principal(self) -> Principal:
        return self._principal

    def public_key_der(self) -> bytes:
        return self._public_key_der

    def sign(self, message: bytes) -> bytes:
        try:
            der = self._private_key.sign(message, ec.ECDSA(hashes.SHA256()))
        except (ValueError, UnsupportedAlgorithm) as e:
            raise SigningError(str(e)) from e
        r, s = decode_dss_signature(der)
        if s > _HALF_ORDER:
            s = _ORDER - s
        return r.to_bytes(_SCALAR_LEN, "big") + s.to_bytes(_SCALAR_LEN, "big")

    def sign_delegation(self, delegation: Delegation) -> bytes:
        return self.sign(delegation.signing_message())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(principal={self._principal.to_text()})"


class BaseIdentity(Secp256k1Identity):
    """
    Long-lived visitor key. Persisted server-side as a JWK; never transmitted.
    """

    __slots__ = ()


class SessionIdentity(Secp256k1Identity):
    """
    Ephemeral key that acts for a base identity through a signed delegation.
    """

    __slots__ = ()


AnyIdentity = BaseIdentity | SessionIdentity


def verify_signature(public_key_der: bytes, message: bytes, signature: bytes) -> bool:
    if len(signature) != 2 * _SCALAR_LEN:
        return False
    try:
        key = serialization.load_der_public_key(public_key_der)
    except (ValueError, UnsupportedAlgorithm):
        return False
    if not isinstance(key, ec.EllipticCurvePublicKey) or key.curve.name != _CURVE_NAME:
        return False

    r = int.from_bytes(signature[:_SCALAR_LEN], "big")
    s = int.from_bytes(signature[_SCALAR_LEN:], "big")
    # High-S signatures are malleable copies; only the normalized form is accepted.
    if not (0 < r < _ORDER and 0 < s <= _HALF_ORDER):
        return False
    try:
        key.verify(encode_dss_signature(r, s), message, ec.ECDSA(hashes.SHA256()))
    except InvalidSignature:
        return False
    return True
