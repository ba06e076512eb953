"""Pull-style streaming JSON reader that reports one parse event at a time."""

from __future__ import annotations

import enum
from collections.abc import Iterator
from typing import BinaryIO, NoReturn, Union

from domecore.utf8 import (
    encode_utf8,
    hex_value,
    is_json_space,
    is_legal_utf8,
    needs_escaping,
    utf8_sequence_length,
)

EOF = -1

_ESCAPES = {
    ord("\\"): ord("\\"),
    ord("b"): 0x08,
    ord("f"): 0x0C,
    ord("n"): 0x0A,
    ord("r"): 0x0D,
    ord("t"): 0x09,
    ord("/"): ord("/"),
    ord('"'): ord('"'),
}

_DIGITS = frozenset(range(ord("0"), ord("9") + 1))
_NONZERO_DIGITS = frozenset(range(ord("1"), ord("9") + 1))

Source = Union[str, bytes, bytearray, memoryview, BinaryIO]


class JsonType(enum.IntEnum):
    """Kinds of events produced by :class:`JsonStream`."""

    ERROR = 1
    DONE = 2
    OBJECT = 3
    OBJECT_END = 4
    ARRAY = 5
    ARRAY_END = 6
    STRING = 7
    NUMBER = 8
    TRUE = 9
    FALSE = 10
    NULL = 11


class JsonError(ValueError):
    """Raised when the input is not valid JSON."""


def _show(c: int) -> str:
    return "EOF" if c < 0 else chr(c)


class _Source:
    """Byte source over an in-memory buffer or a readable object."""

    def __init__(self, source: Source) -> None:
        if isinstance(source, str):
            source = source.encode("utf-8")
        if isinstance(source, (bytes, bytearray, memoryview)):
            self._buffer: bytes | None = bytes(source)
            self._reader = None
        elif hasattr(source, "read"):
            self._buffer = None
            self._reader = source
        else:
            raise TypeError(f"unsupported JSON source: {type(source).__name__}")
        self._index = 0
        self._backlog = bytearray()
        self.position = 0

    def peek(self) -> int:
        if self._buffer is not None:
            if self._index < len(self._buffer):
                return self._buffer[self._index]
            return EOF
        if not self._backlog:
            chunk = self._reader.read(1)
            if not chunk:
                return EOF
            if isinstance(chunk, str):
                chunk = chunk.encode("utf-8")
            self._backlog.extend(chunk)
        return self._backlog[0]

    def get(self) -> int:
        c = self.peek()
        self.position += 1
        if self._buffer is not None:
            self._index += 1
        elif c != EOF:
            del self._backlog[0]
        return c


class JsonStream:
    """Reads JSON text as a sequence of :class:`JsonType` events.

    In streaming mode (the default) several top-level values may follow one
    another; :meth:`reset` moves on to the next one. Invalid input raises
    :class:`JsonError`, and the stream keeps raising until it is reset.
    """

    def __init__(self, source: Source, streaming: bool = True) -> None:
        self._source = _Source(source)
        self._streaming = streaming
        self.lineno = 1
        self._error: str | None = None
        self._ntokens = 0
        self._pending: JsonType | None = None
        self._stack: list[list] = []
        self._data: bytearray | None = None

    # ---- public API -------------------------------------------------

    @property
    def position(self) -> int:
        """Number of bytes taken from the source so far."""
        return self._source.position

    @property
    def depth(self) -> int:
        """Current nesting depth of arrays and objects."""
        return len(self._stack)

    @property
    def error(self) -> str | None:
        """Message of the error that stopped the stream, if any."""
        return self._error

    @property
    def streaming(self) -> bool:
        return self._streaming

    @streaming.setter
    def streaming(self, value: bool) -> None:
        self._streaming = bool(value)

    def next(self) -> JsonType:
        """Return the next parse event."""
        if self._error is not None:
            raise JsonError(self._error)
        if self._pending is not None:
            pending, self._pending = self._pending, None
            return pending
        if self._ntokens > 0 and not self._stack:
            if not self._streaming:
                while True:
                    c = self._source.peek()
                    if not is_json_space(c):
                        break
                    self._source.get()
                if c != EOF:
                    self._fail(f"expected end of text instead of byte '{_show(c)}'")
            return JsonType.DONE
        c = self._next_char()
        if not self._stack:
            if c == EOF and self._streaming:
                return JsonType.DONE
            return self._read_value(c)
        top = self._stack[-1]
        kind = top[0]
        if kind is JsonType.ARRAY:
            if top[1] == 0:
                if c == ord("]"):
                    return self._pop(c, JsonType.ARRAY)
                top[1] += 1
                return self._read_value(c)
            if c == ord(","):
                top[1] += 1
                return self._read_value(self._next_char())
            if c == ord("]"):
                return self._pop(c, JsonType.ARRAY)
            self._fail(f"unexpected byte '{_show(c)}'")
        if kind is JsonType.OBJECT:
            if top[1] == 0:
                if c == ord("}"):
                    return self._pop(c, JsonType.OBJECT)
                if self._read_value(c) is not JsonType.STRING:
                    self._fail("expected member name or '}'")
                top[1] += 1
                return JsonType.STRING
            if top[1] % 2 == 0:
                if c == ord("}"):
                    return self._pop(c, JsonType.OBJECT)
                if c != ord(","):
                    self._fail("expected ',' or '}' after member value")
                if self._read_value(self._next_char()) is not JsonType.STRING:
                    self._fail("expected member name")
                top[1] += 1
                return JsonType.STRING
            if c != ord(":"):
                self._fail("expected ':' after member name")
            top[1] += 1
            return self._read_value(self._next_char())
        self._fail("invalid parser state")

    def peek(self) -> JsonType:
        """Return the next event without consuming it."""
        if self._pending is None:
            self._pending = self.next()
        return self._pending

    def reset(self) -> None:
        """Clear nesting and errors so the next top-level value can be read."""
        self._stack.clear()
        self._ntokens = 0
        self._error = None

    def skip(self) -> JsonType:
        """Consume the next value whole, returning the event that started it."""
        kind = self.next()
        arrays = objects = 0
        event = kind
        while True:
            if event is JsonType.DONE:
                return event
            if event is JsonType.ARRAY:
                arrays += 1
            elif event is JsonType.ARRAY_END and arrays > 0:
                arrays -= 1
            elif event is JsonType.OBJECT:
                objects += 1
            elif event is JsonType.OBJECT_END and objects > 0:
                objects -= 1
            if not arrays and not objects:
                break
            event = self.next()
        return kind

    def skip_until(self, kind: JsonType) -> JsonType:
        """Skip values until one starting with ``kind`` is consumed."""
        while True:
            event = self.skip()
            if event is JsonType.DONE:
                return event
            if event is kind:
                return kind

    def get_string(self) -> str:
        """Text of the last string or number read."""
        if self._data is None:
            return ""
        return self._data.decode("utf-8")

    def get_number(self) -> float:
        """Value of the last number read."""
        if self._data is None:
            return 0.0
        try:
            return float(self._data.decode("utf-8"))
        except ValueError:
            return 0.0

    def context(self) -> tuple[JsonType, int]:
        """Innermost container and how many events were seen in it.

        Outside any container this is ``(JsonType.DONE, 0)``.
        """
        if not self._stack:
            return JsonType.DONE, 0
        kind, count = self._stack[-1]
        return kind, count

    def source_get(self) -> int | None:
        """Take one raw byte from the source; ``None`` at end of input."""
        c = self._source.get()
        if c == ord("\n"):
            self.lineno += 1
        return None if c == EOF else c

    def source_peek(self) -> int | None:
        """Look at the next raw byte of the source; ``None`` at end of input."""
        c = self._source.peek()
        return None if c == EOF else c

    def __iter__(self) -> Iterator[JsonType]:
        while True:
            event = self.next()
            if event is JsonType.DONE:
                return
            yield event

    # ---- internals --------------------------------------------------

    def _fail(self, message: str) -> NoReturn:
        if self._error is None:
            self._error = message
        raise JsonError(self._error)

    def _push(self, kind: JsonType) -> JsonType:
        self._stack.append([kind, 0])
        return kind

    def _pop(self, c: int, expected: JsonType) -> JsonType:
        if not self._stack or self._stack[-1][0] is not expected:
            self._fail(f"unexpected byte '{_show(c)}'")
        self._stack.pop()
        return JsonType.ARRAY_END if expected is JsonType.ARRAY else JsonType.OBJECT_END

    def _next_char(self) -> int:
        while True:
            c = self._source.get()
            if not is_json_space(c):
                return c
            if c == ord("\n"):
                self.lineno += 1

    def _init_string(self) -> None:
        if self._data is None:
            self._data = bytearray()
        else:
            self._data.clear()

    def _read_value(self, c: int) -> JsonType:
        self._ntokens += 1
        if c == EOF:
            self._fail("unexpected end of text")
        if c == ord("{"):
            return self._push(JsonType.OBJECT)
        if c == ord("["):
            return self._push(JsonType.ARRAY)
        if c == ord('"'):
            return self._read_string()
        if c == ord("n"):
            return self._match(b"ull", JsonType.NULL)
        if c == ord("f"):
            return self._match(b"alse", JsonType.FALSE)
        if c == ord("t"):
            return self._match(b"rue", JsonType.TRUE)
        if c in _DIGITS or c == ord("-"):
            self._init_string()
            return self._read_number(c)
        self._fail(f"unexpected byte '{_show(c)}' in value")

    def _match(self, pattern: bytes, kind: JsonType) -> JsonType:
        for expected in pattern:
            c = self._source.get()
            if c != expected:
                self._fail(f"expected '{chr(expected)}' instead of byte '{_show(c)}'")
        return kind

    def _read_string(self) -> JsonType:
        self._init_string()
        data = self._data
        while True:
            c = self._source.get()
            if c == EOF:
                self._fail("unterminated string literal")
            if c == ord('"'):
                return JsonType.STRING
            if c == ord("\\"):
                self._read_escaped()
            elif c >= 0x80:
                self._read_utf8(c)
            else:
                if needs_escaping(c):
                    self._fail("unescaped control character in string")
                data.append(c)

    def _read_escaped(self) -> None:
        c = self._source.get()
        if c == EOF:
            self._fail("unterminated string literal in escape")
        if c == ord("u"):
            self._read_unicode()
        elif c in _ESCAPES:
            self._data.append(_ESCAPES[c])
        else:
            self._fail(f"invalid escaped byte '{_show(c)}'")

    def _read_unicode_cp(self) -> int:
        cp = 0
        for _ in range(4):
            c = self._source.get()
            if c == EOF:
                self._fail("unterminated string literal in Unicode")
            try:
                digit = hex_value(c)
            except ValueError:
                self._fail(f"invalid escape Unicode byte '{_show(c)}'")
            cp = cp * 16 + digit
        return cp

    def _expect_continuation(self, expected: str) -> None:
        c = self._source.get()
        if c == EOF:
            self._fail("unterminated string literal in Unicode")
        if c != ord(expected):
            self._fail(
                f"invalid continuation for surrogate pair '{_show(c)}', "
                f"expected '{expected}'"
            )

    def _read_unicode(self) -> None:
        cp = self._read_unicode_cp()
        if 0xD800 <= cp <= 0xDBFF:
            high = cp
            self._expect_continuation("\\")
            self._expect_continuation("u")
            low = self._read_unicode_cp()
            if not 0xDC00 <= low <= 0xDFFF:
                self._fail(
                    f"surrogate pair continuation \\u{low:04x} out of range (dc00-dfff)"
                )
            cp = (high - 0xD800) * 0x400 + (low - 0xDC00) + 0x10000
        elif 0xDC00 <= cp <= 0xDFFF:
            self._fail(f"dangling surrogate \\u{cp:04x}")
        try:
            self._data.extend(encode_utf8(cp))
        except ValueError as exc:
            self._fail(str(exc))

    def _read_utf8(self, first: int) -> None:
        count = utf8_sequence_length(first)
        if not count:
            self._fail("invalid UTF-8 character")
        sequence = bytes([first] + [self._source.get() & 0xFF for _ in range(count - 1)])
        if not is_legal_utf8(sequence):
            self._fail("invalid UTF-8 text")
        self._data.extend(sequence)

    def _read_digits(self) -> None:
        nread = 0
        while (c := self._source.peek()) in _DIGITS:
            self._data.append(self._source.get())
            nread += 1
        if nread == 0:
            self._fail(f"expected digit instead of byte '{_show(c)}'")

    def _read_number(self, c: int) -> JsonType:
        self._data.append(c)
        if c == ord("-"):
            c = self._source.get()
            if c in _DIGITS:
                return self._read_number(c)
            self._fail(f"unexpected byte '{_show(c)}' in number")
        if c in _NONZERO_DIGITS and self._source.peek() in _DIGITS:
            self._read_digits()
        c = self._source.peek()
        if c == ord("."):
            self._data.append(self._source.get())
            self._read_digits()
        c = self._source.peek()
        if c in (ord("e"), ord("E")):
            self._data.append(self._source.get())
            c = self._source.peek()
            if c in (ord("+"), ord("-")):
                self._data.append(self._source.get())
                self._read_digits()
            elif c in _DIGITS:
                self._read_digits()
            else:
                self._fail(f"unexpected byte '{_show(c)}' in number")
        return JsonType.NUMBER