# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""tcfkit configuration.

Wire-format constants are fixed in :mod:`tcfkit.tcf.constants`.
Configurable defaults may be overridden via environment variables.
"""

import os
from typing import Optional

# =============================================================================
# DECODING DEFAULTS
# =============================================================================


def _parse_vendor_ids() -> tuple[int, ...]:
    env_value = os.getenv("TCF_DEFAULT_VENDOR_IDS", "")
    if env_value:
        return tuple(int(v.strip()) for v in env_value.split(",") if v.strip())
    return (136, 137, 44)


DEFAULT_VENDOR_IDS: tuple[int, ...] = _parse_vendor_ids()
LENIENT_DECODE: bool = os.getenv("TCF_LENIENT_DECODE", "false").lower() == "true"
MAX_STRING_LENGTH: int = int(os.getenv("TCF_MAX_STRING_LENGTH", "16384"))

# =============================================================================
# GLOBAL VENDOR LIST
# =============================================================================

# Local, already-fetched GVL JSON.  Never downloaded by tcfkit.
GVL_PATH: Optional[str] = os.getenv("TCF_GVL_PATH") or None
GVL_EXPECTED_SPEC_VERSION: int = 3

# =============================================================================
# NETWORK
# =============================================================================

HTTP_HOST: str = os.getenv("TCF_HTTP_HOST", "0.0.0.0")
HTTP_PORT: int = int(os.getenv("TCF_HTTP_PORT", "8000"))

# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL: str = os.getenv("TCF_LOG_LEVEL", "INFO")
LOG_FORMAT: str = os.getenv("TCF_LOG_FORMAT", "json")
