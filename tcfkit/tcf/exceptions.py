# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.
"""TCF decoding exceptions mapped to error codes.

Every decode failure is terminal for a single ``decode`` call: no partial
:class:`~tcfkit.tcf.models.TCModel` is ever returned.
"""


class TCFError(Exception):
    """Base exception for tcfkit.

    Carries an error code so outer layers (HTTP, CLI) can map failures
    to user-facing messages without inspecting exception types.
    """

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


class TCFDecodeError(TCFError):
    """A consent string could not be decoded."""


class InvalidBase64(TCFDecodeError):
    """Malformed base64url alphabet or unrecoverable padding."""

    def __init__(self, message: str = "Consent string is not valid base64url"):
        super().__init__("TCF_INVALID_BASE64", message)

    @classmethod
    def bad_character(cls, char: str, position: int) -> "InvalidBase64":
        return cls(f"Invalid base64url character {char!r} at position {position}")

    @classmethod
    def bad_length(cls, length: int) -> "InvalidBase64":
        return cls(f"Base64url segment of length {length} cannot be padded to whole bytes")


class TruncatedBitstream(TCFDecodeError):
    """A field read would run past the end of the bit sequence."""

    def __init__(self, message: str = "Consent string is truncated"):
        super().__init__("TCF_TRUNCATED", message)

    @classmethod
    def at(cls, offset: int, length: int, available: int) -> "TruncatedBitstream":
        return cls(
            f"Read of {length} bits at offset {offset} exceeds bitstream "
            f"length {available}"
        )

    @classmethod
    def below_minimum(cls, available: int, minimum: int) -> "TruncatedBitstream":
        return cls(f"Core segment has {available} bits, minimum is {minimum}")


class UnsupportedVersion(TCFDecodeError):
    """The Core segment version field is not 2 (v2.0) or 3 (v2.2)."""

    def __init__(self, message: str = "Unsupported TCF version"):
        super().__init__("TCF_UNSUPPORTED_VERSION", message)

    @classmethod
    def for_version(cls, version: int) -> "UnsupportedVersion":
        return cls(f"Unsupported TCF version: {version}")


class MalformedSegment(TCFDecodeError):
    """A structural invariant of the Core segment is violated."""

    def __init__(self, message: str = "Consent string segment is malformed"):
        super().__init__("TCF_MALFORMED_SEGMENT", message)

    @classmethod
    def inverted_range(cls, start: int, end: int) -> "MalformedSegment":
        return cls(f"Vendor range {start}-{end} is inverted")

    @classmethod
    def zero_vendor_id(cls) -> "MalformedSegment":
        return cls("Vendor id 0 is not a valid vendor")

    @classmethod
    def unknown_restriction_type(cls, value: int, purpose_id: int) -> "MalformedSegment":
        return cls(
            f"Publisher restriction for purpose {purpose_id} has undefined type {value}"
        )

    @classmethod
    def zero_purpose_id(cls) -> "MalformedSegment":
        return cls("Publisher restriction names purpose 0")


class GVLError(TCFError):
    """Global Vendor List document could not be loaded or parsed."""

    @classmethod
    def not_found(cls, path: str) -> "GVLError":
        return cls(code="GVL_NOT_FOUND", message=f"GVL file not found: {path}")

    @classmethod
    def invalid(cls, reason: str) -> "GVLError":
        return cls(code="GVL_INVALID", message=f"GVL document is invalid: {reason}")
