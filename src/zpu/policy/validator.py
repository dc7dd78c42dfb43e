"""
Signature chain validation for signed domain policies.

A bundle carries two signatures from two authorities:

  stage 1  ZTS signs the canonical form of the whole ``signedPolicyData``
           (``signature`` / ``keyId``)
  stage 2  ZMS signs the canonical form of ``policyData`` alone
           (``zmsSignature`` / ``zmsKeyId``)

Stage 2 is what stops the distribution service from altering policy
content: it cannot produce a ZMS signature.  Checks run in order and the
first failure aborts; expiry is checked before any signature work.
"""

from __future__ import annotations

import logging
from datetime import datetime

from zpu.core.canonical import to_canonical_string
from zpu.core.exceptions import PolicyExpiredError, SignatureMismatchError
from zpu.core.models import DomainSignedPolicyData
from zpu.crypto.verifier import SignatureError, verify
from zpu.policy.keys import KeyResolver

logger = logging.getLogger(__name__)


def validate_signed_policies(
    data: DomainSignedPolicyData,
    resolver: KeyResolver,
    now: datetime | None = None,
) -> None:
    """
    Verify expiry and both signatures of ``data``.

    Raises:
        PolicyExpiredError: if ``expires`` is in the past.
        KeyResolutionError: if a signing key cannot be resolved.
        SignatureMismatchError: if either signature fails (``stage`` 1 or 2).
    """
    signed = data.signed_policy_data
    if signed.is_expired(now):
        raise PolicyExpiredError(f"The policy data is expired on {signed.expires}")

    zts_key_id = data.key_id or ""
    zts_public_key = resolver.zts_key(zts_key_id)
    try:
        verify(to_canonical_string(signed), data.signature or "", zts_public_key)
    except SignatureError as exc:
        raise SignatureMismatchError(
            f'Verification of data with zts key having id:"{zts_key_id}" failed, Error: {exc}',
            stage=1,
        ) from exc

    zms_key_id = signed.zms_key_id or ""
    zms_public_key = resolver.zms_key(zms_key_id)
    try:
        verify(to_canonical_string(signed.policy_data), signed.zms_signature or "", zms_public_key)
    except SignatureError as exc:
        raise SignatureMismatchError(
            f'Verification of data with zms key with id:"{zms_key_id}" failed, Error: {exc}',
            stage=2,
        ) from exc

    logger.debug("Signature chain verified for domain %s", data.domain)
