"""UTF-8 and JSON character helpers used by the streaming JSON reader."""

from __future__ import annotations

_JSON_SPACE = frozenset((0x09, 0x0A, 0x0D, 0x20))

_SECOND_BYTE_RANGES = {
    0xE0: (0xA0, 0xBF),
    0xED: (0x80, 0x9F),
    0xF0: (0x90, 0xBF),
    0xF4: (0x80, 0x8F),
}


def _code(char: int | str | None) -> int:
    """Return the numeric value of a character; ``None`` stands for end of input."""
    if char is None:
        return -1
    if isinstance(char, str):
        if len(char) != 1:
            raise ValueError(f"expected a single character, got {char!r}")
        return ord(char)
    return int(char)


def encode_utf8(codepoint: int) -> bytes:
    """Encode a code point as UTF-8, rejecting surrogates and out-of-range values."""
    if codepoint < 0:
        raise ValueError(f"unable to encode {codepoint} as UTF-8")
    if codepoint < 0x80:
        return bytes((codepoint,))
    if codepoint < 0x0800:
        return bytes(((codepoint >> 6 & 0x1F) | 0xC0, (codepoint & 0x3F) | 0x80))
    if codepoint < 0x010000:
        if 0xD800 <= codepoint <= 0xDFFF:
            raise ValueError(f"invalid codepoint {codepoint:06x}")
        return bytes(
            (
                (codepoint >> 12 & 0x0F) | 0xE0,
                (codepoint >> 6 & 0x3F) | 0x80,
                (codepoint & 0x3F) | 0x80,
            )
        )
    if codepoint < 0x110000:
        return bytes(
            (
                (codepoint >> 18 & 0x07) | 0xF0,
                (codepoint >> 12 & 0x3F) | 0x80,
                (codepoint >> 6 & 0x3F) | 0x80,
                (codepoint & 0x3F) | 0x80,
            )
        )
    raise ValueError(f"unable to encode {codepoint:06x} as UTF-8")


def hex_value(char: int | str) -> int:
    """Return the value of a hexadecimal digit; raise ValueError otherwise."""
    code = _code(char)
    if 0x30 <= code <= 0x39:
        return code - 0x30
    if 0x61 <= code <= 0x66:
        return code - 0x61 + 10
    if 0x41 <= code <= 0x46:
        return code - 0x41 + 10
    raise ValueError(f"not a hexadecimal digit: {char!r}")


def utf8_sequence_length(byte: int) -> int:
    """Length of the UTF-8 sequence a lead byte starts, or 0 if it cannot lead one."""
    u = byte & 0xFF
    if u < 0x80:
        return 1
    if 0xC2 <= u <= 0xDF:
        return 2
    if 0xE0 <= u <= 0xEF:
        return 3
    if 0xF0 <= u <= 0xF4:
        return 4
    # continuation bytes, overlong leads 0xC0/0xC1 and 0xF5 and above
    return 0


def is_legal_utf8(data: bytes) -> bool:
    """Check a single UTF-8 sequence of one to four bytes for well-formedness."""
    if not data or len(data) > 4:
        return False
    first = data[0]
    if any(not 0x80 <= b <= 0xBF for b in data[2:]):
        return False
    if len(data) >= 2:
        low, high = _SECOND_BYTE_RANGES.get(first, (0x80, 0xBF))
        if not low <= data[1] <= high:
            return False
    if 0x80 <= first < 0xC2:
        return False
    return first <= 0xF4


def needs_escaping(char: int | str | None) -> bool:
    """True for characters that must be escaped inside a JSON string."""
    code = _code(char)
    return code >= 0 and (code < 0x20 or code == 0x22 or code == 0x5C)


def is_json_space(char: int | str | None) -> bool:
    """True for the four whitespace characters JSON allows between tokens."""
    return _code(char) in _JSON_SPACE