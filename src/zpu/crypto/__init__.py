"""
Signature primitives used by the policy chain validator.

ZMS and ZTS encode public keys and signatures with YBase64, a base64
variant that stays safe inside URLs, headers and JSON without escaping.
"""

from __future__ import annotations

from zpu.crypto.verifier import SignatureError, load_public_key, verify
from zpu.crypto.ybase64 import ybase64_decode, ybase64_encode

__all__ = [
    "SignatureError",
    "load_public_key",
    "verify",
    "ybase64_decode",
    "ybase64_encode",
]
