"""HTTP server mode for cauldron-trust.

Provides a lightweight stdlib-based HTTP API over the trust engine without
requiring any additional web framework dependencies.
"""
from __future__ import annotations

from cauldron_trust.server.app import (
    TrustRequestHandler,
    configure_from_settings,
    create_server,
    run_server,
)

__all__ = ["TrustRequestHandler", "configure_from_settings", "create_server", "run_server"]
