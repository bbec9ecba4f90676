# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""TCF Core segment decoder.

Decodes the first ``.``-delimited segment of a TCF consent string into an
immutable :class:`~tcfkit.tcf.models.TCModel`.  Both supported layouts
share a common prefix::

    version:6  created:36  lastUpdated:36  cmpId:12  cmpVersion:12
    consentScreen:6  consentLanguage:2x6  vendorListVersion:12
    policyVersion:6  isServiceSpecific:1  useNonStandardStacks:1
    specialFeatureOptIns:12  purposesConsent:24  purposesLITransparency:24

and differ only in what precedes the trailing vendor and restriction
sections:

- **v2.0** (version ``2``): the sections follow the prefix directly.
- **v2.2** (version ``3``): ``purposeOneTreatment:1  publisherCC:2x6``
  come first.

The layout is selected solely by the 6-bit version field.  Decoding is
all-or-nothing: any failure raises a :class:`TCFDecodeError` subclass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Tuple

from tcfkit.config import DEFAULT_VENDOR_IDS
from tcfkit.tcf.bits import Bits, base64url_to_bits, read_bitfield, read_bool, read_string6, read_uint
from tcfkit.tcf.constants import (
    CMP_ID_BITS,
    CMP_VERSION_BITS,
    CONSENT_SCREEN_BITS,
    COUNTRY_CODE_CHARS,
    CREATED_BITS,
    LANGUAGE_CHARS,
    LAST_UPDATED_BITS,
    MIN_CORE_V20_BITS,
    MIN_CORE_V22_BITS,
    POLICY_VERSION_BITS,
    PURPOSE_BITS,
    SEGMENT_SEPARATOR,
    SPECIAL_FEATURE_BITS,
    VENDOR_LIST_VERSION_BITS,
    VERSION_BITS,
    VERSION_V20,
    VERSION_V22,
)
from tcfkit.tcf.exceptions import TruncatedBitstream, UnsupportedVersion
from tcfkit.tcf.models import DecodeReport, PublisherRestriction, TCModel, VendorReport, VendorSection
from tcfkit.tcf.resolver import resolve, vendor_restrictions
from tcfkit.tcf.sections import parse_publisher_restrictions, parse_vendor_section

logger = logging.getLogger("tcf.decoder")

__all__ = [
    "core_segment_bits",
    "decode",
    "decode_core_v20",
    "decode_core_v22",
    "decode_report",
]


# ---------------------------------------------------------------------------
# Shared layout pieces
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _CorePrefix:
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


@dataclass(frozen=True)
class _CoreTail:
    vendor_consent: VendorSection
    vendor_li: VendorSection
    restrictions: Tuple[PublisherRestriction, ...]


def _read_prefix(bits: Bits) -> Tuple[_CorePrefix, int]:
    """Read the fields common to every supported Core segment version."""
    offset = 0
    version, offset = read_uint(bits, offset, VERSION_BITS)
    created, offset = read_uint(bits, offset, CREATED_BITS)
    last_updated, offset = read_uint(bits, offset, LAST_UPDATED_BITS)
    cmp_id, offset = read_uint(bits, offset, CMP_ID_BITS)
    cmp_version, offset = read_uint(bits, offset, CMP_VERSION_BITS)
    consent_screen, offset = read_uint(bits, offset, CONSENT_SCREEN_BITS)
    consent_language, offset = read_string6(bits, offset, LANGUAGE_CHARS)
    vendor_list_version, offset = read_uint(bits, offset, VENDOR_LIST_VERSION_BITS)
    policy_version, offset = read_uint(bits, offset, POLICY_VERSION_BITS)
    is_service_specific, offset = read_bool(bits, offset)
    use_non_standard_stacks, offset = read_bool(bits, offset)
    special_features, offset = read_bitfield(bits, offset, SPECIAL_FEATURE_BITS)
    purposes_consent, offset = read_bitfield(bits, offset, PURPOSE_BITS)
    purposes_li, offset = read_bitfield(bits, offset, PURPOSE_BITS)

    prefix = _CorePrefix(
        version=version,
        created=created,
        last_updated=last_updated,
        cmp_id=cmp_id,
        cmp_version=cmp_version,
        consent_screen=consent_screen,
        consent_language=consent_language,
        vendor_list_version=vendor_list_version,
        policy_version=policy_version,
        is_service_specific=is_service_specific,
        use_non_standard_stacks=use_non_standard_stacks,
        special_feature_opt_ins=special_features,
        purposes_consent=purposes_consent,
        purposes_li_transparency=purposes_li,
    )
    return prefix, offset


def _read_tail(bits: Bits, offset: int) -> Tuple[_CoreTail, int]:
    """Read vendor consent, vendor LI and publisher restriction sections."""
    vendor_consent, offset = parse_vendor_section(bits, offset)
    vendor_li, offset = parse_vendor_section(bits, offset)
    restrictions, offset = parse_publisher_restrictions(bits, offset)
    return _CoreTail(vendor_consent, vendor_li, restrictions), offset


def _build_model(
    prefix: _CorePrefix,
    tail: _CoreTail,
    purpose_one_treatment: Optional[bool] = None,
    publisher_cc: Optional[str] = None,
) -> TCModel:
    return TCModel(
        version=prefix.version,
        created=prefix.created,
        last_updated=prefix.last_updated,
        cmp_id=prefix.cmp_id,
        cmp_version=prefix.cmp_version,
        consent_screen=prefix.consent_screen,
        consent_language=prefix.consent_language,
        vendor_list_version=prefix.vendor_list_version,
        policy_version=prefix.policy_version,
        is_service_specific=prefix.is_service_specific,
        use_non_standard_stacks=prefix.use_non_standard_stacks,
        special_feature_opt_ins=prefix.special_feature_opt_ins,
        purposes_consent=prefix.purposes_consent,
        purposes_li_transparency=prefix.purposes_li_transparency,
        vendor_consent_section=tail.vendor_consent,
        vendor_li_section=tail.vendor_li,
        publisher_restrictions=tail.restrictions,
        purpose_one_treatment=purpose_one_treatment,
        publisher_cc=publisher_cc,
    )


def _warn_if_zero_filled(bits: Bits, end_offset: int) -> None:
    if bits.zero_fill and end_offset > len(bits):
        logger.warning(
            "Lenient decode read %d bits past the end of a %d-bit core segment",
            end_offset - len(bits), len(bits),
        )


# ---------------------------------------------------------------------------
# Version-specific layouts
# ---------------------------------------------------------------------------

def decode_core_v20(bits: Bits) -> TCModel:
    """Decode a version 2 (TCF v2.0) Core segment."""
    prefix, offset = _read_prefix(bits)
    tail, offset = _read_tail(bits, offset)
    _warn_if_zero_filled(bits, offset)
    return _build_model(prefix, tail)


def decode_core_v22(bits: Bits) -> TCModel:
    """Decode a version 3 (TCF v2.2) Core segment."""
    prefix, offset = _read_prefix(bits)
    purpose_one_treatment, offset = read_bool(bits, offset)
    publisher_cc, offset = read_string6(bits, offset, COUNTRY_CODE_CHARS)
    tail, offset = _read_tail(bits, offset)
    _warn_if_zero_filled(bits, offset)
    return _build_model(prefix, tail, purpose_one_treatment, publisher_cc)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def core_segment_bits(tc_string: str, lenient: bool = False) -> Bits:
    """Return the bit sequence of the Core (first) segment of *tc_string*."""
    core_segment = tc_string.strip().split(SEGMENT_SEPARATOR, 1)[0]
    return base64url_to_bits(core_segment, zero_fill=lenient)


def decode(tc_string: str, *, lenient: bool = False) -> TCModel:
    """Decode the Core segment of a TCF consent string.

    Parameters:
        tc_string: The consent string; segments after the first ``.`` are
            ignored.
        lenient: Read missing trailing bits as zero instead of failing, and
            tolerate inverted ranges and undefined restriction entries.
            The segment must still reach the minimum size of its layout.

    Returns:
        The decoded :class:`TCModel`.

    Raises:
        InvalidBase64: Malformed alphabet or padding.
        TruncatedBitstream: The segment is shorter than its layout minimum,
            or a field runs past the end (strict mode).
        UnsupportedVersion: Version field is neither 2 nor 3.
        MalformedSegment: A structural invariant is violated (strict mode).
    """
    bits = core_segment_bits(tc_string, lenient=lenient)
    if len(bits) < MIN_CORE_V20_BITS:
        raise TruncatedBitstream.below_minimum(len(bits), MIN_CORE_V20_BITS)
    version, _ = read_uint(bits, 0, VERSION_BITS)
    if version == VERSION_V22 and len(bits) < MIN_CORE_V22_BITS:
        raise TruncatedBitstream.below_minimum(len(bits), MIN_CORE_V22_BITS)

    if version == VERSION_V20:
        model = decode_core_v20(bits)
    elif version == VERSION_V22:
        model = decode_core_v22(bits)
    else:
        raise UnsupportedVersion.for_version(version)

    logger.debug(
        "Decoded TC string: version=%s cmp_id=%d vendor_consent=%d vendor_li=%d restrictions=%d",
        model.version_tag,
        model.cmp_id,
        len(model.vendor_consent),
        len(model.vendor_li),
        len(model.publisher_restrictions),
    )
    return model


def decode_report(
    tc_string: str,
    vendor_ids: Optional[Iterable[int]] = None,
    *,
    lenient: bool = False,
) -> DecodeReport:
    """Decode *tc_string* and resolve a list of vendors against it.

    Parameters:
        tc_string: The consent string.
        vendor_ids: Vendors to report on, in output order.  Defaults to
            :data:`tcfkit.config.DEFAULT_VENDOR_IDS`.
        lenient: See :func:`decode`.
    """
    model = decode(tc_string, lenient=lenient)
    ids = DEFAULT_VENDOR_IDS if vendor_ids is None else tuple(vendor_ids)
    reports = tuple(
        VendorReport(
            vendor_id=vendor_id,
            info=resolve(model, vendor_id),
            restrictions=vendor_restrictions(model, vendor_id),
        )
        for vendor_id in ids
    )
    return DecodeReport(version_tag=model.version_tag, model=model, vendors=reports)
