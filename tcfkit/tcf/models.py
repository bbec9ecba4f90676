# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Data models for decoded TCF Core segments.

Defines:
- VendorIdSet: read-only vendor id set stored as merged inclusive ranges
- VendorSection: vendor membership set plus the encoding it was read from
- PublisherRestriction: one (purpose, restriction type, vendors) override
- TCModel: the immutable decoded Core segment
- VendorConsentInfo / VendorReport / DecodeReport: derived results
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Set as AbstractSet
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

from tcfkit.tcf.constants import VERSION_TAGS

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class VendorEncoding(str, Enum):
    BITFIELD = "bitfield"
    RANGE = "range"


class RestrictionType(int, Enum):
    """Publisher restriction type (2-bit wire value)."""

    NOT_ALLOWED = 0
    REQUIRE_CONSENT = 1
    REQUIRE_LEGITIMATE_INTEREST = 2

    @property
    def label(self) -> str:
        return _RESTRICTION_LABELS[self]


_RESTRICTION_LABELS: Dict[RestrictionType, str] = {
    RestrictionType.NOT_ALLOWED: "Not allowed",
    RestrictionType.REQUIRE_CONSENT: "Consent required",
    RestrictionType.REQUIRE_LEGITIMATE_INTEREST: "Legitimate Interest required",
}


@dataclass(frozen=True)
class VendorRange:
    """Inclusive vendor id range; ``start == end`` for a single vendor."""

    start: int
    end: int

    @property
    def is_single(self) -> bool:
        return self.start == self.end


class VendorIdSet(AbstractSet):
    """Immutable set of vendor ids backed by merged inclusive ranges.

    A single range entry can name 65535 vendors in 33 bits, so range-encoded
    sections and restriction vendor lists are never expanded into ints.
    Membership is a binary search over range starts.  Compares equal to any
    other set with the same members; set operators return ``frozenset``.
    """

    __slots__ = ("_starts", "_ends", "_size")

    def __init__(self, ranges: Iterable[VendorRange] = ()):
        merged: List[List[int]] = []
        for entry in sorted(ranges, key=lambda r: r.start):
            if entry.end < entry.start:
                continue
            if merged and entry.start <= merged[-1][1] + 1:
                merged[-1][1] = max(merged[-1][1], entry.end)
            else:
                merged.append([entry.start, entry.end])
        self._starts: Tuple[int, ...] = tuple(start for start, _ in merged)
        self._ends: Tuple[int, ...] = tuple(end for _, end in merged)
        self._size = sum(end - start + 1 for start, end in merged)

    @classmethod
    def _from_iterable(cls, iterable: Iterable[int]) -> FrozenSet[int]:
        return frozenset(iterable)

    @property
    def ranges(self) -> Tuple[VendorRange, ...]:
        """Disjoint, sorted ranges covering exactly the members."""
        return tuple(VendorRange(s, e) for s, e in zip(self._starts, self._ends))

    def __contains__(self, vendor_id: object) -> bool:
        if not isinstance(vendor_id, int):
            return False
        index = bisect_right(self._starts, vendor_id) - 1
        return index >= 0 and vendor_id <= self._ends[index]

    def __iter__(self) -> Iterator[int]:
        for start, end in zip(self._starts, self._ends):
            yield from range(start, end + 1)

    def __len__(self) -> int:
        return self._size

    def __eq__(self, other: object) -> bool:
        if isinstance(other, VendorIdSet):
            return self._starts == other._starts and self._ends == other._ends
        return AbstractSet.__eq__(self, other)

    __hash__ = AbstractSet._hash

    def __repr__(self) -> str:
        spans = ", ".join(
            str(s) if s == e else f"{s}-{e}" for s, e in zip(self._starts, self._ends)
        )
        return f"VendorIdSet({{{spans}}})"


@dataclass(frozen=True)
class VendorSection:
    """A decoded vendor-membership section.

    Attributes:
        max_vendor_id:  Highest vendor id the section describes.
        encoding:       Which of the two wire encodings was used.
        vendors:        Member vendor ids (a ``VendorIdSet`` for range
                        encoding, a ``frozenset`` for bitfield encoding).
        ranges:         Range entries as read (empty for bitfield encoding).
    """

    max_vendor_id: int
    encoding: VendorEncoding
    vendors: AbstractSet
    ranges: Tuple[VendorRange, ...] = ()

    def __contains__(self, vendor_id: object) -> bool:
        return vendor_id in self.vendors


@dataclass(frozen=True)
class PublisherRestriction:
    """Publisher override for one purpose across a set of vendors."""

    purpose_id: int
    restriction_type: RestrictionType
    vendors: VendorIdSet

    @property
    def ranges(self) -> Tuple[VendorRange, ...]:
        return self.vendors.ranges

    def applies_to(self, vendor_id: int) -> bool:
        return vendor_id in self.vendors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "purposeId": self.purpose_id,
            "restrictionType": self.restriction_type.name,
            "label": self.restriction_type.label,
            "vendorRanges": [[r.start, r.end] for r in self.ranges],
        }


def restriction_entries(
    restrictions: Iterable[Tuple[int, RestrictionType]],
) -> List[Dict[str, Any]]:
    """JSON view of ``(purpose_id, restriction_type)`` pairs for one vendor."""
    return [
        {"purposeId": purpose_id, "restrictionType": rtype.name, "label": rtype.label}
        for purpose_id, rtype in restrictions
    ]


@dataclass(frozen=True)
class TCModel:
    """Decoded TCF Core segment.

    ``created`` and ``last_updated`` are deciseconds since the UNIX epoch,
    as carried on the wire.  ``purpose_one_treatment`` and
    ``publisher_cc`` are only present in v2.2 strings and are ``None``
    for v2.0.
    """

    version: int
    created: int
    last_updated: int
    cmp_id: int
    cmp_version: int
    consent_screen: int
    consent_language: str
    vendor_list_version: int
    policy_version: int
    is_service_specific: bool
    use_non_standard_stacks: bool
    special_feature_opt_ins: FrozenSet[int]
    purposes_consent: FrozenSet[int]
    purposes_li_transparency: FrozenSet[int]
    vendor_consent_section: VendorSection
    vendor_li_section: VendorSection
    publisher_restrictions: Tuple[PublisherRestriction, ...] = ()
    purpose_one_treatment: Optional[bool] = None
    publisher_cc: Optional[str] = None

    @property
    def version_tag(self) -> str:
        return VERSION_TAGS[self.version]

    @property
    def vendor_consent(self) -> AbstractSet:
        return self.vendor_consent_section.vendors

    @property
    def vendor_li(self) -> AbstractSet:
        return self.vendor_li_section.vendors

    @property
    def created_at(self) -> datetime:
        return _EPOCH + timedelta(milliseconds=self.created * 100)

    @property
    def last_updated_at(self) -> datetime:
        return _EPOCH + timedelta(milliseconds=self.last_updated * 100)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view; sets become sorted lists."""
        return {
            "version": self.version_tag,
            "created": self.created_at.isoformat(),
            "lastUpdated": self.last_updated_at.isoformat(),
            "cmpId": self.cmp_id,
            "cmpVersion": self.cmp_version,
            "consentScreen": self.consent_screen,
            "consentLanguage": self.consent_language,
            "vendorListVersion": self.vendor_list_version,
            "policyVersion": self.policy_version,
            "isServiceSpecific": self.is_service_specific,
            "useNonStandardStacks": self.use_non_standard_stacks,
            "purposeOneTreatment": self.purpose_one_treatment,
            "publisherCC": self.publisher_cc,
            "specialFeatureOptIns": sorted(self.special_feature_opt_ins),
            "purposesConsent": sorted(self.purposes_consent),
            "purposesLITransparency": sorted(self.purposes_li_transparency),
            "vendorConsent": sorted(self.vendor_consent),
            "vendorLI": sorted(self.vendor_li),
            "vendorConsentEncoding": self.vendor_consent_section.encoding.value,
            "vendorLIEncoding": self.vendor_li_section.encoding.value,
            "publisherRestrictions": [r.to_dict() for r in self.publisher_restrictions],
        }


@dataclass(frozen=True)
class VendorConsentInfo:
    """Effective consent / legitimate-interest status for one vendor."""

    vendor_id: int
    has_consent: bool
    has_legitimate_interest: bool
    effective_purpose_consents: FrozenSet[int]
    effective_legitimate_interests: FrozenSet[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vendorId": self.vendor_id,
            "hasConsent": self.has_consent,
            "hasLegitimateInterest": self.has_legitimate_interest,
            "purposeConsents": sorted(self.effective_purpose_consents),
            "legitimateInterests": sorted(self.effective_legitimate_interests),
        }


@dataclass(frozen=True)
class VendorReport:
    """Resolved status plus the restrictions naming one vendor."""

    vendor_id: int
    info: VendorConsentInfo
    restrictions: Tuple[Tuple[int, RestrictionType], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.vendor_id,
            "info": self.info.to_dict(),
            "restrictions": restriction_entries(self.restrictions),
        }


@dataclass(frozen=True)
class DecodeReport:
    """Decoded model together with reports for a list of vendors."""

    version_tag: str
    model: TCModel
    vendors: Tuple[VendorReport, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version_tag,
            "core": self.model.to_dict(),
            "vendorResults": [v.to_dict() for v in self.vendors],
        }
