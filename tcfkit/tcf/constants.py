# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Wire-format constants for the TCF v2 Core segment.

Field widths are normative (IAB TCF v2 "TC String" format) and are not
configurable.  Environment-driven defaults live in :mod:`tcfkit.config`.
"""

from typing import Dict, Tuple

# =============================================================================
# VERSION FIELD
# =============================================================================

VERSION_V20: int = 2
VERSION_V22: int = 3

VERSION_TAGS: Dict[int, str] = {
    VERSION_V20: "2.0",
    VERSION_V22: "2.2",
}

SEGMENT_SEPARATOR: str = "."

# =============================================================================
# CORE SEGMENT FIELD WIDTHS (bits)
# =============================================================================

VERSION_BITS: int = 6
CREATED_BITS: int = 36
LAST_UPDATED_BITS: int = 36
CMP_ID_BITS: int = 12
CMP_VERSION_BITS: int = 12
CONSENT_SCREEN_BITS: int = 6
LANGUAGE_CHARS: int = 2
VENDOR_LIST_VERSION_BITS: int = 12
POLICY_VERSION_BITS: int = 6
SPECIAL_FEATURE_BITS: int = 12
PURPOSE_BITS: int = 24
COUNTRY_CODE_CHARS: int = 2

CHAR6_BITS: int = 6
CHAR6_OFFSET: int = 65  # 0 -> "A"

# =============================================================================
# VENDOR / RESTRICTION SECTIONS (bits)
# =============================================================================

MAX_VENDOR_ID_BITS: int = 16
VENDOR_ID_BITS: int = 16
NUM_ENTRIES_BITS: int = 12
NUM_RESTRICTIONS_BITS: int = 12
RESTRICTION_PURPOSE_BITS: int = 6
RESTRICTION_TYPE_BITS: int = 2

# version + created + lastUpdated + cmpId + cmpVersion + consentScreen +
# language + vendorListVersion + policyVersion + two flags + three bitfields
CORE_PREFIX_BITS: int = (
    VERSION_BITS + CREATED_BITS + LAST_UPDATED_BITS + CMP_ID_BITS
    + CMP_VERSION_BITS + CONSENT_SCREEN_BITS + LANGUAGE_CHARS * CHAR6_BITS
    + VENDOR_LIST_VERSION_BITS + POLICY_VERSION_BITS + 2
    + SPECIAL_FEATURE_BITS + 2 * PURPOSE_BITS
)

# Two empty bitfield vendor sections plus an empty restriction list.
MIN_CORE_TAIL_BITS: int = 2 * (MAX_VENDOR_ID_BITS + 1) + NUM_RESTRICTIONS_BITS
MIN_CORE_V20_BITS: int = CORE_PREFIX_BITS + MIN_CORE_TAIL_BITS
MIN_CORE_V22_BITS: int = MIN_CORE_V20_BITS + 1 + COUNTRY_CODE_CHARS * CHAR6_BITS

# =============================================================================
# ID RANGES
# =============================================================================

PURPOSE_IDS: Tuple[int, ...] = tuple(range(1, PURPOSE_BITS + 1))

# =============================================================================
# PURPOSE NAMES (used when no GVL is supplied)
# =============================================================================

PURPOSE_NAMES: Dict[int, str] = {
    1: "Store and/or access information on a device",
    2: "Use limited data to select advertising",
    3: "Create profiles for personalised advertising",
    4: "Use profiles to select personalised advertising",
    5: "Create profiles to personalise content",
    6: "Use profiles to select personalised content",
    7: "Measure advertising performance",
    8: "Measure content performance",
    9: "Understand audiences through statistics or combinations of data from different sources",
    10: "Develop and improve services",
    11: "Use limited data to select content",
}


def purpose_name(purpose_id: int) -> str:
    """Return the built-in name for *purpose_id*, or a generic label."""
    return PURPOSE_NAMES.get(purpose_id, f"Purpose {purpose_id}")
