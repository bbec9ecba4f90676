# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""Shared test fixtures for the tcfkit test suite.

Provides a small bit writer for hand-assembling Core segments (there is
no encoder in tcfkit), factory fixtures producing v2.0 / v2.2 consent
strings, and a minimal Global Vendor List document.
"""

from __future__ import annotations

import base64
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pytest

from tcfkit.gvl import GlobalVendorList, parse_gvl
from tcfkit.tcf import Bits

# Real-world v2.0-tagged consent string with a trailing segment.
SAMPLE_TC_STRING = (
    "CPBZjR9PBZjR9AKAZADEBUCsAP_AAH_AAAqIHWtf_X_fb39j-_59_9t0eY1f9_7_v-0zjhfds-8Nyf_X_L8X42M7vF36pq4KuR4Eu3LBIQFlHOHUTUmw6okVrTPsak2Mr7NKJ7LEinMbe2dYGHtfn91TuZKY7_78_9fz3_-v_v___9f3r-3_3__59X---_e_V399zLv9__34HlAEmGpfABdiWODJtGlUKIEYVhIdAKACigGFoisIHVwU7K4CP0EDABAagIwIgQYgoxYBAAIBAEhEQEgB4IBEARAIAAQAqQEIACNgEFgBYGAQACgGhYgRQBCBIQZHBUcpgQESLRQT2VgCUXexphCGUUAJAAA"
    ".YAAAAAAAAAAA"
)

VendorEntry = Union[int, Tuple[int, int]]


# =========================================================================
# Bit writer
# =========================================================================

class BitWriter:
    """Append-only builder for TCF bit sequences.

    Every method returns ``self`` so fields can be chained in wire order.
    """

    def __init__(self) -> None:
        self.bits: List[int] = []

    def __len__(self) -> int:
        return len(self.bits)

    def uint(self, value: int, length: int) -> "BitWriter":
        assert 0 <= value < (1 << length), f"{value} does not fit in {length} bits"
        self.bits.extend((value >> shift) & 1 for shift in range(length - 1, -1, -1))
        return self

    def flag(self, value: bool) -> "BitWriter":
        self.bits.append(1 if value else 0)
        return self

    def bitfield(self, members: Iterable[int], length: int) -> "BitWriter":
        members = set(members)
        self.bits.extend(1 if i in members else 0 for i in range(1, length + 1))
        return self

    def string6(self, text: str) -> "BitWriter":
        for char in text:
            self.uint(ord(char) - 65, 6)
        return self

    def range_list(self, entries: Sequence[VendorEntry]) -> "BitWriter":
        self.uint(len(entries), 12)
        for entry in entries:
            if isinstance(entry, tuple):
                self.flag(True).uint(entry[0], 16).uint(entry[1], 16)
            else:
                self.flag(False).uint(entry, 16)
        return self

    def vendor_bitfield(self, vendors: Iterable[int], max_vendor_id: Optional[int] = None) -> "BitWriter":
        vendors = set(vendors)
        if max_vendor_id is None:
            max_vendor_id = max(vendors, default=0)
        self.uint(max_vendor_id, 16).flag(False)
        return self.bitfield(vendors, max_vendor_id)

    def vendor_ranges(self, entries: Sequence[VendorEntry], max_vendor_id: Optional[int] = None) -> "BitWriter":
        if max_vendor_id is None:
            max_vendor_id = max(
                (e[1] if isinstance(e, tuple) else e for e in entries), default=0
            )
        self.uint(max_vendor_id, 16).flag(True)
        return self.range_list(entries)

    def restrictions(self, restrictions: Sequence[Tuple[int, int, Sequence[VendorEntry]]]) -> "BitWriter":
        self.uint(len(restrictions), 12)
        for purpose_id, restriction_type, entries in restrictions:
            self.uint(purpose_id, 6).uint(restriction_type, 2).range_list(entries)
        return self

    def to_bits(self, zero_fill: bool = False) -> Bits:
        return Bits(values=tuple(self.bits), zero_fill=zero_fill)

    def to_bytes(self) -> bytes:
        padded = self.bits + [0] * (-len(self.bits) % 8)
        return bytes(
            int("".join(str(b) for b in padded[i:i + 8]), 2)
            for i in range(0, len(padded), 8)
        )

    def to_base64url(self) -> str:
        return base64.urlsafe_b64encode(self.to_bytes()).rstrip(b"=").decode("ascii")


def vendor_runs(vendors: Iterable[int]) -> List[VendorEntry]:
    """Compress vendor ids into range-list entries."""
    entries: List[VendorEntry] = []
    ordered = sorted(set(vendors))
    i = 0
    while i < len(ordered):
        start = end = ordered[i]
        while i + 1 < len(ordered) and ordered[i + 1] == end + 1:
            i += 1
            end = ordered[i]
        entries.append(start if start == end else (start, end))
        i += 1
    return entries


# =========================================================================
# Core segment factories
# =========================================================================

def write_core(
    version: int = 2,
    created: int = 16_000_000_000,
    last_updated: int = 16_000_000_600,
    cmp_id: int = 10,
    cmp_version: int = 25,
    consent_screen: int = 1,
    language: str = "EN",
    vendor_list_version: int = 84,
    policy_version: int = 2,
    is_service_specific: bool = True,
    use_non_standard_stacks: bool = False,
    special_features: Iterable[int] = (1,),
    purposes_consent: Iterable[int] = (1, 2, 3, 4),
    purposes_li: Iterable[int] = (2, 7),
    purpose_one_treatment: bool = False,
    publisher_cc: str = "GB",
    vendor_consent: Iterable[int] = (2, 6, 8),
    vendor_consent_encoding: str = "bitfield",
    vendor_li: Iterable[int] = (2, 6),
    vendor_li_encoding: str = "bitfield",
    restrictions: Sequence[Tuple[int, int, Sequence[VendorEntry]]] = (),
    include_tail: bool = True,
) -> BitWriter:
    """Assemble a Core segment in wire order.

    For ``version == 3`` the v2.2 fields are written before the vendor
    sections.  ``include_tail=False`` stops after the common prefix.
    """
    w = BitWriter()
    w.uint(version, 6).uint(created, 36).uint(last_updated, 36)
    w.uint(cmp_id, 12).uint(cmp_version, 12).uint(consent_screen, 6)
    w.string6(language).uint(vendor_list_version, 12).uint(policy_version, 6)
    w.flag(is_service_specific).flag(use_non_standard_stacks)
    w.bitfield(special_features, 12).bitfield(purposes_consent, 24).bitfield(purposes_li, 24)
    if not include_tail:
        return w

    if version == 3:
        w.flag(purpose_one_treatment).string6(publisher_cc)

    for vendors, encoding in (
        (vendor_consent, vendor_consent_encoding),
        (vendor_li, vendor_li_encoding),
    ):
        if encoding == "range":
            w.vendor_ranges(vendor_runs(vendors))
        else:
            w.vendor_bitfield(vendors)

    w.restrictions(restrictions)
    return w


@pytest.fixture
def bit_writer() -> BitWriter:
    """A fresh, empty bit writer."""
    return BitWriter()


@pytest.fixture
def make_writer() -> Callable[[], BitWriter]:
    """Factory fixture for tests that need several independent writers."""
    return BitWriter


@pytest.fixture
def make_core() -> Callable[..., BitWriter]:
    """Factory fixture: assemble a Core segment as a :class:`BitWriter`."""
    return write_core


@pytest.fixture
def make_tc_string() -> Callable[..., str]:
    """Factory fixture: create a base64url consent string.

    Keyword arguments are passed to :func:`write_core`; ``suffix`` is
    appended verbatim (e.g. ``".YAAAAAAAAAAA"`` for a second segment).
    """

    def _make(suffix: str = "", **kwargs: Any) -> str:
        return write_core(**kwargs).to_base64url() + suffix

    return _make


@pytest.fixture
def v20_string(make_tc_string: Callable[..., str]) -> str:
    return make_tc_string(version=2)


@pytest.fixture
def v22_string(make_tc_string: Callable[..., str]) -> str:
    return make_tc_string(version=3, purpose_one_treatment=True, publisher_cc="FR")


@pytest.fixture
def sample_tc_string() -> str:
    return SAMPLE_TC_STRING


# =========================================================================
# Global Vendor List
# =========================================================================

def gvl_document() -> Dict[str, Any]:
    """Minimal GVL v3 document covering the vendors used in the tests."""
    return {
        "gvlSpecificationVersion": 3,
        "vendorListVersion": 84,
        "tcfPolicyVersion": 4,
        "lastUpdated": "2024-01-04T16:05:26Z",
        "purposes": {
            "1": {"id": 1, "name": "Store and/or access information on a device", "description": "Cookies."},
            "2": {"id": 2, "name": "Use limited data to select advertising", "description": "Basic ads."},
            "3": {"id": 3, "name": "Create profiles for personalised advertising", "description": "Profiles."},
            "4": {"id": 4, "name": "Use profiles to select personalised advertising", "description": "Ads."},
            "7": {"id": 7, "name": "Measure advertising performance", "description": "Measurement."},
        },
        "specialPurposes": {
            "1": {"id": 1, "name": "Ensure security, prevent and detect fraud, and fix errors", "description": ""},
        },
        "features": {
            "1": {"id": 1, "name": "Match and combine data from other data sources", "description": ""},
        },
        "specialFeatures": {
            "1": {"id": 1, "name": "Use precise geolocation data", "description": "Geo."},
            "2": {"id": 2, "name": "Actively scan device characteristics for identification", "description": ""},
        },
        "vendors": {
            "2": {
                "id": 2,
                "name": "Captify Technologies Limited",
                "purposes": [1, 2, 3, 4],
                "legIntPurposes": [7],
                "flexiblePurposes": [2, 7],
                "specialPurposes": [1],
                "features": [1],
                "specialFeatures": [1, 2],
                "urls": [{"langId": "en", "privacy": "https://example.com/captify/privacy"}],
            },
            "6": {
                "id": 6,
                "name": "AdSpirit GmbH",
                "purposes": [1, 3],
                "legIntPurposes": [2, 7],
                "flexiblePurposes": [2],
                "specialPurposes": [],
                "features": [],
                "specialFeatures": [],
                "policyUrl": "https://example.com/adspirit/privacy",
            },
            "8": {
                "id": 8,
                "name": "Deleted Vendor Ltd",
                "purposes": [1],
                "legIntPurposes": [],
                "flexiblePurposes": [],
                "specialPurposes": [],
                "features": [],
                "specialFeatures": [],
                "deletedDate": "2023-06-01T00:00:00Z",
            },
        },
    }


@pytest.fixture
def gvl_data() -> Dict[str, Any]:
    return gvl_document()


@pytest.fixture
def gvl(gvl_data: Dict[str, Any]) -> GlobalVendorList:
    return parse_gvl(gvl_data)
