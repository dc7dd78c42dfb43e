"""
Public key resolution for the signature chain.

Keys are looked up by (service, keyId).  A key pinned in the config wins;
otherwise the key is fetched from ZMS (``sys.auth.<service>``) and
YBase64-decoded to PEM.  Remote results are memoized for the lifetime of
the resolver.  A key never changes for a given keyId, so two threads
racing to resolve the same key store the same value.
"""

from __future__ import annotations

import logging
import threading

from zpu.clients.base import KeyAuthorityClient
from zpu.core.config import ZpuConfig
from zpu.core.constants import SYSTEM_DOMAIN, ZMS_SERVICE, ZTS_SERVICE
from zpu.core.exceptions import KeyResolutionError, RemoteError
from zpu.crypto.ybase64 import ybase64_decode

logger = logging.getLogger(__name__)


class KeyResolver:
    """Resolve ZTS and ZMS public keys to PEM text."""

    def __init__(self, config: ZpuConfig, zms: KeyAuthorityClient) -> None:
        self._config = config
        self._zms = zms
        self._cache: dict[tuple[str, str], str] = {}
        self._lock = threading.Lock()

    def zts_key(self, key_id: str) -> str:
        return self.resolve(ZTS_SERVICE, key_id)

    def zms_key(self, key_id: str) -> str:
        return self.resolve(ZMS_SERVICE, key_id)

    def resolve(self, service: str, key_id: str) -> str:
        """
        Return the PEM public key ``key_id`` of ``service``.

        Raises:
            KeyResolutionError: if the key cannot be fetched or decoded.
        """
        static = self._static_key(service, key_id)
        if static:
            return static

        cache_key = (service, key_id)
        with self._lock:
            cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            entry = self._zms.get_public_key_entry(SYSTEM_DOMAIN, service, key_id)
        except RemoteError as exc:
            raise KeyResolutionError(
                f'Unable to get the {service} public key with id:"{key_id}" to verify data: {exc}'
            ) from exc
        try:
            pem = ybase64_decode(entry.key).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as exc:
            raise KeyResolutionError(
                f'Unable to decode the {service} public key with id:"{key_id}" to verify data'
            ) from exc

        logger.debug("Resolved %s public key %r from ZMS", service, key_id)
        with self._lock:
            self._cache[cache_key] = pem
        return pem

    def _static_key(self, service: str, key_id: str) -> str:
        if service == ZTS_SERVICE:
            return self._config.get_zts_public_key(key_id)
        if service == ZMS_SERVICE:
            return self._config.get_zms_public_key(key_id)
        return ""
