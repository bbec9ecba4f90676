"""TCF consent-string codec.

Decodes the Core segment of IAB TCF v2.0 / v2.2 consent strings and
resolves effective per-vendor consent after publisher restrictions.
Encoding, non-Core segments and GVL fetching are out of scope.
"""

from .bits import Bits, base64url_to_bits, format_bits, read_bitfield, read_bool, read_string6, read_uint
from .decoder import core_segment_bits, decode, decode_core_v20, decode_core_v22, decode_report
from .exceptions import (
    GVLError,
    InvalidBase64,
    MalformedSegment,
    TCFDecodeError,
    TCFError,
    TruncatedBitstream,
    UnsupportedVersion,
)
from .models import (
    DecodeReport,
    PublisherRestriction,
    RestrictionType,
    TCModel,
    VendorConsentInfo,
    VendorEncoding,
    VendorIdSet,
    VendorRange,
    VendorReport,
    VendorSection,
    restriction_entries,
)
from .resolver import resolve, vendor_restrictions
from .sections import parse_publisher_restrictions, parse_vendor_range_list, parse_vendor_section

__all__ = [
    # Exceptions
    "TCFError",
    "TCFDecodeError",
    "InvalidBase64",
    "TruncatedBitstream",
    "UnsupportedVersion",
    "MalformedSegment",
    "GVLError",
    # Models
    "Bits",
    "DecodeReport",
    "PublisherRestriction",
    "RestrictionType",
    "TCModel",
    "VendorConsentInfo",
    "VendorEncoding",
    "VendorIdSet",
    "VendorRange",
    "VendorReport",
    "VendorSection",
    # Functions
    "base64url_to_bits",
    "format_bits",
    "read_uint",
    "read_bool",
    "read_bitfield",
    "read_string6",
    "parse_vendor_section",
    "parse_vendor_range_list",
    "parse_publisher_restrictions",
    "core_segment_bits",
    "decode",
    "decode_core_v20",
    "decode_core_v22",
    "decode_report",
    "resolve",
    "restriction_entries",
    "vendor_restrictions",
]
