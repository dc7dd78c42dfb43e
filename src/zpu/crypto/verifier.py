"""
Signature verification over canonical strings.

Signatures are YBase64-encoded and computed with SHA-256.  The algorithm
follows the key type:

  RSA      PKCS#1 v1.5 / SHA-256
  EC       ECDSA / SHA-256 (DER signature)
  Ed25519  pure Ed25519 over the input bytes
"""

from __future__ import annotations

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa

from zpu.crypto.ybase64 import ybase64_decode

PublicKey = rsa.RSAPublicKey | ec.EllipticCurvePublicKey | ed25519.Ed25519PublicKey


class SignatureError(Exception):
    """Raised when a signature is malformed or does not match the input."""


def load_public_key(pem: str | bytes) -> PublicKey:
    """Load a PEM public key, rejecting key types we cannot verify with."""
    data = pem.encode("utf-8") if isinstance(pem, str) else pem
    try:
        key = serialization.load_pem_public_key(data)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise SignatureError(f"Unable to load public key: {exc}") from exc
    if not isinstance(key, (rsa.RSAPublicKey, ec.EllipticCurvePublicKey, ed25519.Ed25519PublicKey)):
        raise SignatureError(f"Unsupported public key type: {type(key).__name__}")
    return key


def verify(data: str, signature: str, public_key: str | bytes) -> None:
    """
    Verify ``signature`` over ``data`` with a PEM ``public_key``.

    Raises:
        SignatureError: if the key or signature cannot be decoded, or the
            signature does not match.
    """
    key = load_public_key(public_key)
    try:
        sig = ybase64_decode(signature)
    except ValueError as exc:
        raise SignatureError(f"Unable to decode signature: {exc}") from exc

    message = data.encode("utf-8")
    try:
        if isinstance(key, rsa.RSAPublicKey):
            key.verify(sig, message, padding.PKCS1v15(), hashes.SHA256())
        elif isinstance(key, ec.EllipticCurvePublicKey):
            key.verify(sig, message, ec.ECDSA(hashes.SHA256()))
        else:
            key.verify(sig, message)
    except InvalidSignature as exc:
        raise SignatureError("Signature does not match data") from exc
