import io
import tarfile

import pytest

from domecore.tar import (
    BLOCK_SIZE,
    EntryType,
    TarArchive,
    TarError,
    TarErrorCode,
    TarHeader,
    strerror,
)


def build(files):
    buf = io.BytesIO()
    archive = TarArchive(buf)
    for name, data in files:
        archive.write_file_header(name, len(data))
        archive.write_data(data)
    archive.finalize()
    return buf.getvalue()


def test_round_trip_header_and_data():
    data = build([("hello.txt", b"hello world")])
    archive = TarArchive(io.BytesIO(data))
    header = archive.read_header()
    assert header.name == "hello.txt"
    assert header.size == len(b"hello world")
    assert header.type == EntryType.REG
    assert header.mode == 0o664
    assert archive.read_data(header.size) == b"hello world"


def test_archive_is_block_aligned():
    data = build([("a", b"x" * 700), ("b", b"yz")])
    assert len(data) % BLOCK_SIZE == 0


def test_raw_header_layout():
    data = build([("hello", b"abcde")])
    assert data[0:5] == b"hello"
    assert data[148:156][6:] == b"\x00 "
    assert data[156:157] == b"0"
    assert data[124:125] == b"5"


def test_find_second_entry():
    data = build([("one", b"111"), ("two", b"22222")])
    archive = TarArchive(io.BytesIO(data))
    header = archive.find("two")
    assert header.size == 5
    assert archive.read_data(5) == b"22222"


def test_find_missing_entry():
    data = build([("one", b"111")])
    archive = TarArchive(io.BytesIO(data))
    with pytest.raises(TarError) as info:
        archive.find("nope")
    assert info.value.code is TarErrorCode.NOTFOUND


def test_read_data_in_chunks_returns_to_header():
    payload = b"0123456789"
    archive = TarArchive(io.BytesIO(build([("f", payload)])))
    assert archive.read_data(4) + archive.read_data(6) == payload
    assert archive.pos == archive.last_header
    assert archive.read_header().name == "f"


def test_next_moves_to_following_entry():
    archive = TarArchive(io.BytesIO(build([("a", b"x" * 600), ("b", b"y")])))
    archive.next()
    assert archive.read_header().name == "b"


def test_stdlib_reads_our_archive():
    data = build([("doc.txt", b"contents")])
    with tarfile.open(fileobj=io.BytesIO(data)) as tf:
        member = tf.getmember("doc.txt")
        assert member.size == len(b"contents")
        assert tf.extractfile(member).read() == b"contents"


def test_we_read_stdlib_archive():
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.USTAR_FORMAT) as tf:
        info = tarfile.TarInfo("data.bin")
        info.size = 3
        tf.addfile(info, io.BytesIO(b"abc"))
    archive = TarArchive(io.BytesIO(buf.getvalue()))
    header = archive.find("data.bin")
    assert archive.read_data(header.size) == b"abc"


def test_bad_checksum():
    data = bytearray(build([("f", b"data")]))
    data[0] ^= 0x01
    archive = TarArchive(io.BytesIO(bytes(data)))
    with pytest.raises(TarError) as info:
        archive.read_header()
    assert info.value.code is TarErrorCode.BADCHKSUM


def test_null_record():
    archive = TarArchive(io.BytesIO(bytes(BLOCK_SIZE)))
    with pytest.raises(TarError) as info:
        archive.read_header()
    assert info.value.code is TarErrorCode.NULLRECORD


def test_short_read():
    archive = TarArchive(io.BytesIO(b"abc"))
    with pytest.raises(TarError) as info:
        archive.read_header()
    assert info.value.code is TarErrorCode.READFAIL


def test_dir_header():
    buf = io.BytesIO()
    archive = TarArchive(buf)
    archive.write_dir_header("folder/")
    archive.finalize()
    header = TarArchive(io.BytesIO(buf.getvalue())).read_header()
    assert header.type == EntryType.DIR
    assert header.mode == 0o775
    assert header.size == 0


def test_write_header_round_trip():
    original = TarHeader(name="link", size=0, mode=0o644, owner=7, mtime=1234, type="2", linkname="target")
    buf = io.BytesIO()
    TarArchive(buf).write_header(original)
    assert TarArchive(io.BytesIO(buf.getvalue())).read_header() == original


def test_name_too_long():
    archive = TarArchive(io.BytesIO())
    with pytest.raises(ValueError):
        archive.write_file_header("n" * 101, 1)


def test_stream_reading():
    data = build([("a", b"first"), ("b", b"second")])
    archive = TarArchive(io.BytesIO(data))
    first = archive.stream_read_header()
    assert first.name == "a"
    archive.stream_next(first.size)
    second = archive.stream_read_header()
    assert second.name == "b"
    assert archive.stream_read_data(second, second.size) == b"second"
    with pytest.raises(TarError) as info:
        archive.stream_read_header()
    assert info.value.code is TarErrorCode.NULLRECORD


def test_open_files(tmp_path):
    path = tmp_path / "out.tar"
    with TarArchive.open(path, "w") as archive:
        archive.write_file_header("x.txt", 2)
        archive.write_data(b"hi")
        archive.finalize()
    with TarArchive.open(path, "r") as archive:
        header = archive.find("x.txt")
        assert archive.read_data(header.size) == b"hi"


def test_open_missing_file(tmp_path):
    with pytest.raises(TarError) as info:
        TarArchive.open(tmp_path / "missing.tar", "r")
    assert info.value.code is TarErrorCode.OPENFAIL


def test_open_empty_file(tmp_path):
    path = tmp_path / "empty.tar"
    path.write_bytes(b"")
    with pytest.raises(TarError) as info:
        TarArchive.open(path, "r")
    assert info.value.code is TarErrorCode.READFAIL


@pytest.mark.parametrize(
    "code, message",
    [
        (TarErrorCode.SUCCESS, "success"),
        (TarErrorCode.FAILURE, "failure"),
        (TarErrorCode.OPENFAIL, "could not open"),
        (TarErrorCode.READFAIL, "could not read"),
        (TarErrorCode.WRITEFAIL, "could not write"),
        (TarErrorCode.SEEKFAIL, "could not seek"),
        (TarErrorCode.BADCHKSUM, "bad checksum"),
        (TarErrorCode.NULLRECORD, "null record"),
        (TarErrorCode.NOTFOUND, "file not found"),
        (42, "unknown error"),
    ],
)
def test_strerror(code, message):
    assert strerror(code) == message