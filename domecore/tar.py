"""Minimal reader and writer for classic 512-byte-block tar archives."""

from __future__ import annotations

import enum
import os
import re
from dataclasses import dataclass
from typing import BinaryIO

BLOCK_SIZE = 512

_NAME = slice(0, 100)
_MODE = slice(100, 108)
_OWNER = slice(108, 116)
_SIZE = slice(124, 136)
_MTIME = slice(136, 148)
_CHECKSUM = slice(148, 156)
_TYPE = 156
_LINKNAME = slice(157, 257)

_OCTAL = re.compile(r"[0-7]+")


class TarErrorCode(enum.IntEnum):
    """Reasons a tar operation can fail."""

    SUCCESS = 0
    FAILURE = -1
    OPENFAIL = -2
    READFAIL = -3
    WRITEFAIL = -4
    SEEKFAIL = -5
    BADCHKSUM = -6
    NULLRECORD = -7
    NOTFOUND = -8


_MESSAGES = {
    TarErrorCode.SUCCESS: "success",
    TarErrorCode.FAILURE: "failure",
    TarErrorCode.OPENFAIL: "could not open",
    TarErrorCode.READFAIL: "could not read",
    TarErrorCode.WRITEFAIL: "could not write",
    TarErrorCode.SEEKFAIL: "could not seek",
    TarErrorCode.BADCHKSUM: "bad checksum",
    TarErrorCode.NULLRECORD: "null record",
    TarErrorCode.NOTFOUND: "file not found",
}


def strerror(code: int) -> str:
    """Human-readable description of a :class:`TarErrorCode` value."""
    try:
        return _MESSAGES[TarErrorCode(code)]
    except ValueError:
        return "unknown error"


class TarError(Exception):
    """A tar operation failed; ``code`` tells why."""

    def __init__(self, code: int) -> None:
        self.code = TarErrorCode(code)
        super().__init__(strerror(code))


class EntryType(str, enum.Enum):
    """Type flags of archive entries."""

    REG = "0"
    LNK = "1"
    SYM = "2"
    CHR = "3"
    BLK = "4"
    DIR = "5"
    FIFO = "6"


@dataclass
class TarHeader:
    """Metadata of one archive entry."""

    name: str = ""
    size: int = 0
    mode: int = 0
    owner: int = 0
    mtime: int = 0
    type: str = ""
    linkname: str = ""


def _round_up(n: int, incr: int) -> int:
    return n + (incr - n % incr) % incr


def _checksum(raw: bytes) -> int:
    return 256 + sum(raw[: _CHECKSUM.start]) + sum(raw[_TYPE:])


def _cstring(field: bytes) -> bytes:
    return field.split(b"\0", 1)[0]


def _parse_octal(field: bytes) -> int | None:
    text = _cstring(field).decode("ascii", "replace").lstrip()
    match = _OCTAL.match(text)
    return int(match.group(), 8) if match else None


def _put_octal(raw: bytearray, field: slice, value: int, label: str) -> None:
    if value < 0:
        raise ValueError(f"{label} must not be negative")
    text = f"{value:o}".encode("ascii")
    width = field.stop - field.start
    if len(text) >= width:
        raise ValueError(f"{label} {value} does not fit in the header")
    raw[field.start : field.start + len(text)] = text


def _put_text(raw: bytearray, field: slice, value: str, label: str) -> None:
    data = value.encode("utf-8")
    if len(data) > field.stop - field.start:
        raise ValueError(f"{label} {value!r} is too long")
    raw[field.start : field.start + len(data)] = data


def _header_to_raw(header: TarHeader) -> bytes:
    raw = bytearray(BLOCK_SIZE)
    _put_octal(raw, _MODE, header.mode, "mode")
    _put_octal(raw, _OWNER, header.owner, "owner")
    _put_octal(raw, _SIZE, header.size, "size")
    _put_octal(raw, _MTIME, header.mtime, "mtime")
    kind = str(header.type.value if isinstance(header.type, EntryType) else header.type)
    kind_bytes = (kind or EntryType.REG.value).encode("latin-1")
    if len(kind_bytes) != 1:
        raise ValueError(f"entry type must be one character, got {kind!r}")
    raw[_TYPE] = kind_bytes[0]
    _put_text(raw, _NAME, header.name, "name")
    _put_text(raw, _LINKNAME, header.linkname, "link name")
    raw[_CHECKSUM] = f"{_checksum(raw):06o}".encode("ascii") + b"\0 "
    return bytes(raw)


def _raw_to_header(raw: bytes) -> TarHeader:
    checksum = raw[_CHECKSUM]
    if checksum[0] == 0:
        raise TarError(TarErrorCode.NULLRECORD)
    if checksum[6] != 0 or checksum[7] != 0x20:
        raise TarError(TarErrorCode.BADCHKSUM)
    stored = _parse_octal(checksum)
    if stored is None or stored != _checksum(raw):
        raise TarError(TarErrorCode.BADCHKSUM)
    return TarHeader(
        name=_cstring(raw[_NAME]).decode("utf-8", "replace"),
        size=_parse_octal(raw[_SIZE]) or 0,
        mode=_parse_octal(raw[_MODE]) or 0,
        owner=_parse_octal(raw[_OWNER]) or 0,
        mtime=_parse_octal(raw[_MTIME]) or 0,
        type=chr(raw[_TYPE]),
        linkname=_cstring(raw[_LINKNAME]).decode("utf-8", "replace"),
    )


class TarArchive:
    """Tar archive over a binary stream.

    The random-access methods need a seekable stream; the ``stream_*``
    methods only read forwards.
    """

    def __init__(self, stream: BinaryIO) -> None:
        self.stream = stream
        self.pos = 0
        self.remaining_data = 0
        self.last_header = 0

    @classmethod
    def open(cls, path: str | os.PathLike[str], mode: str = "r") -> TarArchive:
        """Open an archive file; in read mode the first header is checked."""
        file_mode = None
        if "r" in mode:
            file_mode = "rb"
        if "w" in mode:
            file_mode = "wb"
        if "a" in mode:
            file_mode = "ab"
        if file_mode is None:
            raise ValueError(f"invalid archive mode {mode!r}")
        try:
            stream = open(path, file_mode)
        except OSError as exc:
            raise TarError(TarErrorCode.OPENFAIL) from exc
        archive = cls(stream)
        if file_mode == "rb":
            try:
                archive.read_header()
            except TarError:
                archive.close()
                raise
        return archive

    def close(self) -> None:
        self.stream.close()

    def __enter__(self) -> TarArchive:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ---- low level I/O ----------------------------------------------

    def _read(self, size: int) -> bytes:
        try:
            data = self.stream.read(size)
        except OSError as exc:
            self.pos += size
            raise TarError(TarErrorCode.READFAIL) from exc
        self.pos += size
        if data is None or len(data) != size:
            raise TarError(TarErrorCode.READFAIL)
        return bytes(data)

    def _write(self, data: bytes) -> None:
        try:
            written = self.stream.write(data)
        except OSError as exc:
            self.pos += len(data)
            raise TarError(TarErrorCode.WRITEFAIL) from exc
        self.pos += len(data)
        if written is not None and written != len(data):
            raise TarError(TarErrorCode.WRITEFAIL)

    def _discard(self, n: int) -> None:
        while n > 0:
            self._read(min(n, BLOCK_SIZE))
            n -= BLOCK_SIZE

    # ---- random access ----------------------------------------------

    def seek(self, pos: int) -> None:
        self.pos = pos
        try:
            self.stream.seek(pos)
        except (OSError, ValueError) as exc:
            raise TarError(TarErrorCode.SEEKFAIL) from exc

    def rewind(self) -> None:
        self.remaining_data = 0
        self.last_header = 0
        self.seek(0)

    def next(self) -> None:
        """Move to the header of the following entry."""
        header = self.read_header()
        self.seek(self.pos + _round_up(header.size, BLOCK_SIZE) + BLOCK_SIZE)

    def find(self, name: str) -> TarHeader:
        """Return the header of the entry called ``name``, positioned on it."""
        self.rewind()
        while True:
            try:
                header = self.read_header()
            except TarError as exc:
                if exc.code is TarErrorCode.NULLRECORD:
                    raise TarError(TarErrorCode.NOTFOUND) from exc
                raise
            if header.name == name:
                return header
            self.next()

    def read_header(self) -> TarHeader:
        """Read the header at the current position without moving past it."""
        self.last_header = self.pos
        raw = self._read(BLOCK_SIZE)
        self.seek(self.last_header)
        return _raw_to_header(raw)

    def read_data(self, size: int) -> bytes:
        """Read ``size`` bytes of the current entry's data."""
        if self.remaining_data == 0:
            header = self.read_header()
            self.seek(self.pos + BLOCK_SIZE)
            self.remaining_data = header.size
        data = self._read(size)
        self.remaining_data -= size
        if self.remaining_data == 0:
            self.seek(self.last_header)
        return data

    # ---- writing ----------------------------------------------------

    def write_header(self, header: TarHeader) -> None:
        raw = _header_to_raw(header)
        self.remaining_data = header.size
        self._write(raw)

    def write_file_header(self, name: str, size: int) -> None:
        self.write_header(TarHeader(name=name, size=size, type=EntryType.REG, mode=0o664))

    def write_dir_header(self, name: str) -> None:
        self.write_header(TarHeader(name=name, type=EntryType.DIR, mode=0o775))

    def write_data(self, data: bytes) -> None:
        """Write entry data; padding follows once the declared size is reached."""
        self._write(bytes(data))
        self.remaining_data -= len(data)
        if self.remaining_data == 0:
            self._write(bytes(_round_up(self.pos, BLOCK_SIZE) - self.pos))

    def finalize(self) -> None:
        """Write the two empty records that end an archive."""
        self._write(bytes(BLOCK_SIZE * 2))

    # ---- forward-only reading ---------------------------------------

    def stream_next(self, file_size: int) -> None:
        """Skip the data of an entry whose header was just read."""
        self._discard(_round_up(file_size, BLOCK_SIZE))

    def stream_read_header(self) -> TarHeader:
        self.last_header = self.pos
        return _raw_to_header(self._read(BLOCK_SIZE))

    def stream_read_data(self, header: TarHeader, size: int) -> bytes:
        if self.remaining_data == 0:
            self.remaining_data = header.size
        data = self._read(size)
        self.remaining_data -= size
        if self.remaining_data == 0:
            self._discard(_round_up(header.size, BLOCK_SIZE) - header.size)
        return data