# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Per-vendor consent resolution with publisher restrictions applied.

Pure functions over a decoded :class:`TCModel`; no I/O, never raises.
Every restriction rule only removes purposes, so the result does not
depend on the order restrictions appear in the string.
"""

from typing import Set, Tuple

from tcfkit.tcf.models import RestrictionType, TCModel, VendorConsentInfo


def resolve(model: TCModel, vendor_id: int) -> VendorConsentInfo:
    """Resolve the effective purpose sets for *vendor_id*.

    - ``NOT_ALLOWED`` removes the purpose from both sets.
    - ``REQUIRE_CONSENT`` removes it from legitimate interests.
    - ``REQUIRE_LEGITIMATE_INTEREST`` removes it from consents.

    An unknown vendor yields ``False`` flags and empty sets.
    """
    has_consent = vendor_id in model.vendor_consent
    has_li = vendor_id in model.vendor_li

    purpose_consents: Set[int] = set(model.purposes_consent) if has_consent else set()
    legitimate_interests: Set[int] = set(model.purposes_li_transparency) if has_li else set()

    for restriction in model.publisher_restrictions:
        if not restriction.applies_to(vendor_id):
            continue
        purpose_id = restriction.purpose_id
        if restriction.restriction_type is RestrictionType.NOT_ALLOWED:
            purpose_consents.discard(purpose_id)
            legitimate_interests.discard(purpose_id)
        elif restriction.restriction_type is RestrictionType.REQUIRE_CONSENT:
            legitimate_interests.discard(purpose_id)
        elif restriction.restriction_type is RestrictionType.REQUIRE_LEGITIMATE_INTEREST:
            purpose_consents.discard(purpose_id)

    return VendorConsentInfo(
        vendor_id=vendor_id,
        has_consent=has_consent,
        has_legitimate_interest=has_li,
        effective_purpose_consents=frozenset(purpose_consents),
        effective_legitimate_interests=frozenset(legitimate_interests),
    )


def vendor_restrictions(
    model: TCModel, vendor_id: int
) -> Tuple[Tuple[int, RestrictionType], ...]:
    """Return ``(purpose_id, restriction_type)`` for restrictions naming *vendor_id*, in wire order."""
    return tuple(
        (r.purpose_id, r.restriction_type)
        for r in model.publisher_restrictions
        if r.applies_to(vendor_id)
    )
