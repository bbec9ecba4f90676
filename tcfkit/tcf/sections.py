# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""Vendor range and publisher restriction section parsers.

Both sections are variable-length and self-describing: the number of
bits they occupy is only known once their own header fields have been
read.  Each parser therefore returns the new cursor alongside its value.

Vendor section layout::

    maxVendorId:16  isRangeEncoding:1  (bitfield | range list)

    bitfield    maxVendorId x flag:1
    range list  numEntries:12  numEntries x (isRange:1  id:16 [endId:16])

Publisher restriction layout::

    numRestrictions:12  numRestrictions x (purposeId:6  type:2  range list)

Restriction vendor lists always use the range-list grammar.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from tcfkit.tcf.bits import Bits, read_bitfield, read_bool, read_uint
from tcfkit.tcf.constants import (
    MAX_VENDOR_ID_BITS,
    NUM_ENTRIES_BITS,
    NUM_RESTRICTIONS_BITS,
    RESTRICTION_PURPOSE_BITS,
    RESTRICTION_TYPE_BITS,
    VENDOR_ID_BITS,
)
from tcfkit.tcf.exceptions import MalformedSegment
from tcfkit.tcf.models import (
    PublisherRestriction,
    RestrictionType,
    VendorEncoding,
    VendorIdSet,
    VendorRange,
    VendorSection,
)

__all__ = [
    "parse_publisher_restrictions",
    "parse_vendor_range_list",
    "parse_vendor_section",
]


def _validate(entry: VendorRange, lenient: bool) -> Optional[VendorRange]:
    """Return the part of *entry* that names real vendor ids.

    In lenient mode an inverted range covers nothing and id 0 is dropped.
    """
    if entry.start > entry.end:
        if lenient:
            return None
        raise MalformedSegment.inverted_range(entry.start, entry.end)
    if entry.start == 0:
        if not lenient:
            raise MalformedSegment.zero_vendor_id()
        if entry.end == 0:
            return None
        return VendorRange(start=1, end=entry.end)
    return entry


def parse_vendor_range_list(
    bits: Bits,
    offset: int,
) -> Tuple[VendorIdSet, Tuple[VendorRange, ...], int]:
    """Parse ``numEntries:12`` followed by that many range entries.

    Returns:
        ``(vendors, ranges, new_offset)``.  *vendors* stays range-backed;
        *ranges* holds the entries exactly as read.

    Raises:
        MalformedSegment: On an inverted range or vendor id 0 (strict mode).
        TruncatedBitstream: If an entry runs past the end of *bits*.
    """
    lenient = bits.zero_fill
    num_entries, offset = read_uint(bits, offset, NUM_ENTRIES_BITS)

    valid: List[VendorRange] = []
    ranges: List[VendorRange] = []
    for _ in range(num_entries):
        is_range, offset = read_bool(bits, offset)
        start, offset = read_uint(bits, offset, VENDOR_ID_BITS)
        if is_range:
            end, offset = read_uint(bits, offset, VENDOR_ID_BITS)
        else:
            end = start
        entry = VendorRange(start=start, end=end)
        checked = _validate(entry, lenient)
        if checked is not None:
            valid.append(checked)
        ranges.append(entry)

    return VendorIdSet(valid), tuple(ranges), offset


def parse_vendor_section(bits: Bits, offset: int) -> Tuple[VendorSection, int]:
    """Parse a vendor consent or vendor legitimate-interest section.

    The encoding branch is chosen by the ``isRangeEncoding`` bit read from
    the stream; both branches leave the cursor just past the section.
    """
    max_vendor_id, offset = read_uint(bits, offset, MAX_VENDOR_ID_BITS)
    is_range_encoding, offset = read_bool(bits, offset)

    if is_range_encoding:
        vendors, ranges, offset = parse_vendor_range_list(bits, offset)
        section = VendorSection(
            max_vendor_id=max_vendor_id,
            encoding=VendorEncoding.RANGE,
            vendors=vendors,
            ranges=ranges,
        )
    else:
        vendors, offset = read_bitfield(bits, offset, max_vendor_id)
        section = VendorSection(
            max_vendor_id=max_vendor_id,
            encoding=VendorEncoding.BITFIELD,
            vendors=vendors,
        )
    return section, offset


def parse_publisher_restrictions(
    bits: Bits,
    offset: int,
) -> Tuple[Tuple[PublisherRestriction, ...], int]:
    """Parse the publisher restriction section, preserving wire order.

    Raises:
        MalformedSegment: On purpose id 0 or the undefined restriction
            type 3 (strict mode).  Lenient mode skips such entries.
    """
    lenient = bits.zero_fill
    num_restrictions, offset = read_uint(bits, offset, NUM_RESTRICTIONS_BITS)

    restrictions: List[PublisherRestriction] = []
    for _ in range(num_restrictions):
        purpose_id, offset = read_uint(bits, offset, RESTRICTION_PURPOSE_BITS)
        type_value, offset = read_uint(bits, offset, RESTRICTION_TYPE_BITS)
        vendors, _, offset = parse_vendor_range_list(bits, offset)

        if purpose_id == 0:
            if lenient:
                continue
            raise MalformedSegment.zero_purpose_id()
        try:
            restriction_type = RestrictionType(type_value)
        except ValueError:
            if lenient:
                continue
            raise MalformedSegment.unknown_restriction_type(type_value, purpose_id) from None

        restrictions.append(
            PublisherRestriction(
                purpose_id=purpose_id,
                restriction_type=restriction_type,
                vendors=vendors,
            )
        )

    return tuple(restrictions), offset
