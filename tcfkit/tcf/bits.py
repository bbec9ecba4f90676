# Copyright (c) Rich Connexions Ltd. All rights reserved.
# Licensed under the MIT License. See LICENSE for details.

"""Base64url bit decoding and bit-field readers for TCF strings.

A TCF segment is a base64url string (no padding) whose decoded bytes are
read as one flat, big-endian bit sequence with no byte alignment between
fields.  This module provides:

- **Bit decoding**: :func:`base64url_to_bits` turns a segment into an
  immutable :class:`Bits` value.
- **Field readers**: :func:`read_uint`, :func:`read_bool`,
  :func:`read_bitfield` and :func:`read_string6`.  Readers are stateless;
  each takes an explicit ``offset`` and returns ``(value, new_offset)`` so
  callers thread the cursor through a decode.

Reads past the end of the sequence raise :class:`TruncatedBitstream`
unless the sequence was built with ``zero_fill=True``, in which case the
missing bits read as ``0``.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import FrozenSet, Iterator, Tuple

from tcfkit.tcf.constants import CHAR6_BITS, CHAR6_OFFSET
from tcfkit.tcf.exceptions import InvalidBase64, TruncatedBitstream

__all__ = [
    "Bits",
    "base64url_to_bits",
    "format_bits",
    "read_bitfield",
    "read_bool",
    "read_string6",
    "read_uint",
]


# ---------------------------------------------------------------------------
# Base64url alphabet
# ---------------------------------------------------------------------------

_B64URL_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"

_B64URL_CHARS: FrozenSet[str] = frozenset(_B64URL_ALPHABET)


# ---------------------------------------------------------------------------
# Bit sequence
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Bits:
    """Immutable, ordered sequence of single bits.

    Attributes:
        values:     The bits, most-significant bit of each byte first.
        zero_fill:  When ``True``, reads beyond ``len(values)`` yield ``0``
                    instead of raising :class:`TruncatedBitstream`.
    """

    values: Tuple[int, ...]
    zero_fill: bool = False

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[int]:
        return iter(self.values)

    def __getitem__(self, index: int) -> int:
        return self.values[index]

    def take(self, offset: int, length: int) -> Tuple[int, ...]:
        """Return *length* bits starting at *offset*.

        Raises:
            TruncatedBitstream: If the read exceeds the sequence and
                ``zero_fill`` is off.
        """
        end = offset + length
        if end <= len(self.values):
            return self.values[offset:end]
        if not self.zero_fill:
            raise TruncatedBitstream.at(offset, length, len(self.values))
        present = self.values[offset:]
        return present + (0,) * (length - len(present))

    @classmethod
    def from_bytes(cls, raw: bytes, zero_fill: bool = False) -> "Bits":
        """Expand *raw* into bits, MSB first within each byte."""
        values = tuple(
            (byte >> shift) & 1 for byte in raw for shift in range(7, -1, -1)
        )
        return cls(values=values, zero_fill=zero_fill)

    @classmethod
    def from_string(cls, text: str, zero_fill: bool = False) -> "Bits":
        """Build a sequence from a string of ``"0"``/``"1"`` characters.

        Whitespace is ignored so fixtures can be grouped for readability.
        """
        values = tuple(int(ch) for ch in text if not ch.isspace())
        if any(v not in (0, 1) for v in values):
            raise ValueError("Bit strings may only contain '0' and '1'")
        return cls(values=values, zero_fill=zero_fill)


# ---------------------------------------------------------------------------
# Base64url -> bits
# ---------------------------------------------------------------------------

def base64url_to_bits(segment: str, zero_fill: bool = False) -> Bits:
    """Decode a base64url *segment* into a flat :class:`Bits` sequence.

    Trailing ``=`` padding is accepted but not required.  ``-`` and ``_``
    are translated to ``+`` and ``/`` and the string is padded to a
    multiple of four before decoding.

    Raises:
        InvalidBase64: If a character lies outside ``[A-Za-z0-9-_]`` or the
            length cannot be padded to whole bytes.
    """
    stripped = segment.rstrip("=")
    for position, char in enumerate(stripped):
        if char not in _B64URL_CHARS:
            raise InvalidBase64.bad_character(char, position)

    if len(stripped) % 4 == 1:
        raise InvalidBase64.bad_length(len(stripped))

    translated = stripped.replace("-", "+").replace("_", "/")
    padded = translated + "=" * (-len(translated) % 4)
    try:
        raw = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidBase64(f"Base64url decoding failed: {exc}") from exc

    return Bits.from_bytes(raw, zero_fill=zero_fill)


# ---------------------------------------------------------------------------
# Field readers
# ---------------------------------------------------------------------------

def read_uint(bits: Bits, offset: int, length: int) -> Tuple[int, int]:
    """Read *length* bits at *offset* as a big-endian unsigned integer."""
    value = 0
    for bit in bits.take(offset, length):
        value = (value << 1) | bit
    return value, offset + length


def read_bool(bits: Bits, offset: int) -> Tuple[bool, int]:
    """Read a single flag bit."""
    (bit,) = bits.take(offset, 1)
    return bit == 1, offset + 1


def read_bitfield(bits: Bits, offset: int, length: int) -> Tuple[FrozenSet[int], int]:
    """Read a *length*-bit field as the set of 1-based indices that are set.

    Used for purpose, special-feature and bitfield-encoded vendor sets.
    """
    chunk = bits.take(offset, length)
    members = frozenset(index for index, bit in enumerate(chunk, start=1) if bit)
    return members, offset + length


def read_string6(bits: Bits, offset: int, num_chars: int) -> Tuple[str, int]:
    """Read *num_chars* 6-bit letters (``0`` -> ``"A"``).

    Used for the two-letter language and country code fields.
    """
    chars = []
    for _ in range(num_chars):
        value, offset = read_uint(bits, offset, CHAR6_BITS)
        chars.append(chr(value + CHAR6_OFFSET))
    return "".join(chars), offset


# ---------------------------------------------------------------------------
# Debug rendering
# ---------------------------------------------------------------------------

def format_bits(bits: Bits, group: int = 8, line: int = 64) -> str:
    """Render *bits* as ``0``/``1`` text, grouped for inspection.

    Groups of *group* bits are separated by a space and every *line* bits
    start a new line.
    """
    lines = []
    values = bits.values
    for start in range(0, len(values), line):
        row = values[start:start + line]
        groups = (
            "".join(str(b) for b in row[i:i + group])
            for i in range(0, len(row), group)
        )
        lines.append(" ".join(groups))
    return "\n".join(lines)
