"""
Atomic policy file writer.

The new bundle is written in full to ``<tmp_dir>/<domain>.tmp``, flushed
to disk, then moved onto ``<policy_dir>/<domain>.pol`` with a single
``os.replace``.  A reader of the policy file sees either the previous
complete bundle or the new one, never a partial write or a missing file.
``tmp_dir`` must be on the same filesystem as ``policy_dir``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from zpu.core.constants import TMP_POLICY_FILE_SUFFIX
from zpu.core.exceptions import PersistError
from zpu.core.models import DomainSignedPolicyData
from zpu.policy.cache import policy_file_path

logger = logging.getLogger(__name__)


def tmp_policy_file_path(tmp_dir: Path, domain: str) -> Path:
    return tmp_dir / f"{domain}{TMP_POLICY_FILE_SUFFIX}"


def write_policies(
    data: DomainSignedPolicyData,
    domain: str,
    policy_dir: Path,
    tmp_dir: Path,
) -> Path:
    """
    Replace the policy file for ``domain`` with ``data``.

    Returns:
        Path of the written policy file.

    Raises:
        PersistError: on any failure.  Failures before the rename leave the
            policy file untouched; a failed rename leaves the temp file in
            place for inspection.
    """
    policy_file = policy_file_path(policy_dir, domain)
    tmp_file = tmp_policy_file_path(tmp_dir, domain)

    try:
        payload = data.to_json().encode("utf-8")
    except ValueError as exc:
        raise PersistError(f"Cannot serialize policies for domain {domain}: {exc}") from exc

    try:
        # Left over from an interrupted run
        tmp_file.unlink(missing_ok=True)
        tmp_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        with open(tmp_file, "wb") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        tmp_file.chmod(0o644)
    except OSError as exc:
        raise PersistError(f"Cannot write temporary policy file {tmp_file}: {exc}") from exc

    try:
        os.replace(tmp_file, policy_file)
    except OSError as exc:
        raise PersistError(
            f"Cannot move {tmp_file} to {policy_file}: {exc} (temporary file kept)"
        ) from exc

    logger.debug("Wrote %d bytes to %s", len(payload), policy_file)
    return policy_file
