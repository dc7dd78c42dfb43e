"""
Remote capabilities used by the updater.

The pipeline depends only on the interfaces in :mod:`zpu.clients.base`;
:mod:`zpu.clients.http` provides the httpx-backed implementations used
in production.  Tests substitute in-memory fakes.
"""

from __future__ import annotations

from zpu.clients.base import KeyAuthorityClient, PolicyDistributionClient
from zpu.clients.http import ZMSClient, ZTSClient, format_url

__all__ = [
    "KeyAuthorityClient",
    "PolicyDistributionClient",
    "ZMSClient",
    "ZTSClient",
    "format_url",
]
