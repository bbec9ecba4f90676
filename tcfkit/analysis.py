# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""GVL-enriched vendor analysis.

Joins a decoded :class:`~tcfkit.tcf.models.TCModel` with a caller-supplied
:class:`~tcfkit.gvl.GlobalVendorList` to report, per vendor and purpose,
what the vendor declares in the GVL and what the consent string grants.

Rules per purpose:

- Consent is granted when the vendor has consent in the string, declares
  the purpose as a consent purpose, and the purpose has global consent.
- Legitimate interest likewise against ``legIntPurposes`` and the
  purpose LI transparency bits.
- ``NOT_ALLOWED`` clears both.  ``REQUIRE_CONSENT`` clears LI and, for a
  flexible purpose, grants consent if the vendor and purpose have it.
  ``REQUIRE_LEGITIMATE_INTEREST`` mirrors that for LI.

When several restrictions target the same (purpose, vendor) pair the most
restrictive wins: ``NOT_ALLOWED`` dominates, and both "require" types
together collapse to ``NOT_ALLOWED``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Set, Tuple

from tcfkit.config import DEFAULT_VENDOR_IDS
from tcfkit.gvl import GlobalVendorList, GVLVendor
from tcfkit.tcf.constants import PURPOSE_IDS
from tcfkit.tcf.models import RestrictionType, TCModel

logger = logging.getLogger(__name__)


class PurposeFilter(str, Enum):
    allowed = "allowed"
    consent = "consent"
    legitimate = "legitimate"


@dataclass(frozen=True)
class PurposeAnalysis:
    id: int
    name: str
    description: str
    is_allowed: bool
    is_legitimate_interest_allowed: bool
    is_flexible: bool
    has_consent: bool
    has_legitimate_interest: bool
    restriction: Optional[RestrictionType] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "isAllowed": self.is_allowed,
            "isLegitimateInterestAllowed": self.is_legitimate_interest_allowed,
            "isFlexiblePurpose": self.is_flexible,
            "hasConsent": self.has_consent,
            "hasLegitimateInterest": self.has_legitimate_interest,
            "restriction": self.restriction.name if self.restriction is not None else None,
        }


@dataclass(frozen=True)
class DeclarationAnalysis:
    """Special feature, special purpose or feature declared by a vendor.

    ``has_consent`` is only meaningful for special features (opt-in);
    it is ``None`` for declarations that need no user signal.
    """

    id: int
    name: str
    description: str
    has_consent: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "name": self.name, "description": self.description}
        if self.has_consent is not None:
            data["hasConsent"] = self.has_consent
        return data


@dataclass(frozen=True)
class VendorAnalysis:
    id: int
    name: str
    policy_url: Optional[str]
    has_consent: bool
    has_legitimate_interest: bool
    purposes: Tuple[PurposeAnalysis, ...] = ()
    special_features: Tuple[DeclarationAnalysis, ...] = ()
    special_purposes: Tuple[DeclarationAnalysis, ...] = ()
    features: Tuple[DeclarationAnalysis, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "policyUrl": self.policy_url,
            "hasConsent": self.has_consent,
            "hasLegitimateInterest": self.has_legitimate_interest,
            "purposes": [p.to_dict() for p in self.purposes],
            "specialFeatures": [d.to_dict() for d in self.special_features],
            "specialPurposes": [d.to_dict() for d in self.special_purposes],
            "features": [d.to_dict() for d in self.features],
        }


@dataclass(frozen=True)
class VendorSummary:
    total_vendors: int
    vendors_with_consent: int
    vendors_with_legitimate_interest: int
    purposes_with_consent: Dict[int, int] = field(default_factory=dict)
    purposes_with_legitimate_interest: Dict[int, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalVendors": self.total_vendors,
            "vendorsWithConsent": self.vendors_with_consent,
            "vendorsWithLegitimateInterest": self.vendors_with_legitimate_interest,
            "purposesWithConsent": dict(sorted(self.purposes_with_consent.items())),
            "purposesWithLegInt": dict(sorted(self.purposes_with_legitimate_interest.items())),
        }


# ---------------------------------------------------------------------------
# Restrictions
# ---------------------------------------------------------------------------

def effective_restrictions(model: TCModel, vendor_id: int) -> Dict[int, RestrictionType]:
    """Collapse the restrictions naming *vendor_id* to one type per purpose."""
    by_purpose: Dict[int, Set[RestrictionType]] = {}
    for restriction in model.publisher_restrictions:
        if restriction.applies_to(vendor_id):
            by_purpose.setdefault(restriction.purpose_id, set()).add(restriction.restriction_type)

    effective: Dict[int, RestrictionType] = {}
    for purpose_id, types in by_purpose.items():
        if RestrictionType.NOT_ALLOWED in types or len(types) > 1:
            effective[purpose_id] = RestrictionType.NOT_ALLOWED
        else:
            (effective[purpose_id],) = types
    return effective


# ---------------------------------------------------------------------------
# Per-vendor analysis
# ---------------------------------------------------------------------------

def _analyze_purposes(
    model: TCModel,
    gvl: GlobalVendorList,
    vendor: GVLVendor,
    has_consent: bool,
    has_li: bool,
) -> Tuple[PurposeAnalysis, ...]:
    restrictions = effective_restrictions(model, vendor.id)
    results = []
    for purpose_id in PURPOSE_IDS:
        declaration = gvl.purposes.get(purpose_id)
        if declaration is None:
            continue

        is_allowed = purpose_id in vendor.purposes
        is_li_allowed = purpose_id in vendor.leg_int_purposes
        if not (is_allowed or is_li_allowed):
            continue
        is_flexible = purpose_id in vendor.flexible_purposes

        global_consent = has_consent and purpose_id in model.purposes_consent
        global_li = has_li and purpose_id in model.purposes_li_transparency
        purpose_consent = global_consent and is_allowed
        purpose_li = global_li and is_li_allowed

        restriction = restrictions.get(purpose_id)
        if restriction is RestrictionType.NOT_ALLOWED:
            purpose_consent = False
            purpose_li = False
        elif restriction is RestrictionType.REQUIRE_CONSENT:
            purpose_li = False
            if is_flexible and global_consent:
                purpose_consent = True
        elif restriction is RestrictionType.REQUIRE_LEGITIMATE_INTEREST:
            purpose_consent = False
            if is_flexible and global_li:
                purpose_li = True

        results.append(
            PurposeAnalysis(
                id=purpose_id,
                name=declaration.name or gvl.purpose_name(purpose_id),
                description=declaration.description,
                is_allowed=is_allowed,
                is_legitimate_interest_allowed=is_li_allowed,
                is_flexible=is_flexible,
                has_consent=purpose_consent,
                has_legitimate_interest=purpose_li,
                restriction=restriction,
            )
        )
    return tuple(results)


def analyze_vendor(model: TCModel, gvl: GlobalVendorList, vendor_id: int) -> Optional[VendorAnalysis]:
    """Analyze one vendor, or return ``None`` if it is not in the GVL."""
    vendor = gvl.vendor(vendor_id)
    if vendor is None:
        return None

    has_consent = vendor_id in model.vendor_consent
    has_li = vendor_id in model.vendor_li

    special_features = tuple(
        DeclarationAnalysis(
            id=feature_id,
            name=gvl.special_features[feature_id].name,
            description=gvl.special_features[feature_id].description,
            has_consent=feature_id in model.special_feature_opt_ins,
        )
        for feature_id in vendor.special_features
        if feature_id in gvl.special_features
    )
    special_purposes = tuple(
        DeclarationAnalysis(
            id=purpose_id,
            name=gvl.special_purposes[purpose_id].name,
            description=gvl.special_purposes[purpose_id].description,
        )
        for purpose_id in vendor.special_purposes
        if purpose_id in gvl.special_purposes
    )
    features = tuple(
        DeclarationAnalysis(
            id=feature_id,
            name=gvl.features[feature_id].name,
            description=gvl.features[feature_id].description,
        )
        for feature_id in vendor.features
        if feature_id in gvl.features
    )

    return VendorAnalysis(
        id=vendor_id,
        name=vendor.name,
        policy_url=vendor.privacy_url,
        has_consent=has_consent,
        has_legitimate_interest=has_li,
        purposes=_analyze_purposes(model, gvl, vendor, has_consent, has_li),
        special_features=special_features,
        special_purposes=special_purposes,
        features=features,
    )


def analyze_vendors(
    model: TCModel,
    gvl: GlobalVendorList,
    vendor_ids: Optional[Iterable[int]] = None,
) -> Tuple[VendorAnalysis, ...]:
    """Analyze requested vendors plus every vendor with consent or LI.

    Vendors missing from the GVL are skipped.  Results are sorted by id.
    """
    requested = set(DEFAULT_VENDOR_IDS if vendor_ids is None else vendor_ids)
    candidates = sorted(
        vid for vid in gvl.vendors
        if vid in requested or vid in model.vendor_consent or vid in model.vendor_li
    )

    results = []
    for vendor_id in candidates:
        analysis = analyze_vendor(model, gvl, vendor_id)
        if analysis is not None:
            results.append(analysis)

    skipped = len(requested.difference(gvl.vendors))
    if skipped:
        logger.debug("Skipped %d vendors not present in GVL version %d", skipped, gvl.vendor_list_version)
    return tuple(results)


# ---------------------------------------------------------------------------
# Summaries and queries
# ---------------------------------------------------------------------------

def summarize_vendors(analyses: Iterable[VendorAnalysis]) -> VendorSummary:
    """Count vendors with consent / LI, overall and per purpose."""
    total = 0
    with_consent = 0
    with_li = 0
    purposes_consent: Dict[int, int] = {}
    purposes_li: Dict[int, int] = {}

    for vendor in analyses:
        total += 1
        if vendor.has_consent:
            with_consent += 1
        if vendor.has_legitimate_interest:
            with_li += 1
        for purpose in vendor.purposes:
            if purpose.has_consent:
                purposes_consent[purpose.id] = purposes_consent.get(purpose.id, 0) + 1
            if purpose.has_legitimate_interest:
                purposes_li[purpose.id] = purposes_li.get(purpose.id, 0) + 1

    return VendorSummary(
        total_vendors=total,
        vendors_with_consent=with_consent,
        vendors_with_legitimate_interest=with_li,
        purposes_with_consent=purposes_consent,
        purposes_with_legitimate_interest=purposes_li,
    )


def filter_purposes(
    purposes: Iterable[PurposeAnalysis],
    status: PurposeFilter,
) -> Tuple[PurposeAnalysis, ...]:
    status = PurposeFilter(status)
    if status is PurposeFilter.allowed:
        return tuple(p for p in purposes if p.is_allowed)
    if status is PurposeFilter.consent:
        return tuple(p for p in purposes if p.has_consent)
    return tuple(p for p in purposes if p.has_legitimate_interest)


def vendor_has_purpose_consent(vendor: VendorAnalysis, purpose_id: int) -> bool:
    return any(p.id == purpose_id and p.has_consent for p in vendor.purposes)


def vendor_has_purpose_legitimate_interest(vendor: VendorAnalysis, purpose_id: int) -> bool:
    return any(p.id == purpose_id and p.has_legitimate_interest for p in vendor.purposes)
