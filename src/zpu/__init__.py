"""
ZPU: policy updater for the local policy enforcement point (ZPE).

For each configured domain, ZPU pulls the signed policy bundle from the
token service (ZTS), verifies the two-stage signature chain against keys
published by the management service (ZMS), and atomically replaces the
local ``<domain>.pol`` file.  It also rolls up per-domain usage metrics
written by local enforcement processes and posts them to ZTS.

Package layout (src/zpu/):
  core/        config, constants, exceptions, models, canonical form, logging
  crypto/      YBase64 codec and signature verification
  clients/     ZTS / ZMS capability interfaces and httpx clients
  policy/      key resolution, chain validation, cache probe, writer, updater
  metrics/     metric snapshot aggregation and reporting
  os/systemd/  systemd timer integration for periodic runs
  cli/         Click CLI entry point
"""

__version__ = "0.3.0"
__all__ = ["__version__"]
