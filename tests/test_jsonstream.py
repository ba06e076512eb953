import io

import pytest

from domecore.jsonstream import JsonError, JsonStream, JsonType


def events(text, streaming=True):
    return list(JsonStream(text, streaming))


def test_array_events():
    assert events('[1, "a", true, false, null]') == [
        JsonType.ARRAY,
        JsonType.NUMBER,
        JsonType.STRING,
        JsonType.TRUE,
        JsonType.FALSE,
        JsonType.NULL,
        JsonType.ARRAY_END,
    ]


def test_object_events_and_key():
    stream = JsonStream('{"key": 2}')
    assert stream.next() is JsonType.OBJECT
    assert stream.next() is JsonType.STRING
    assert stream.get_string() == "key"
    assert stream.context() == (JsonType.OBJECT, 1)
    assert stream.next() is JsonType.NUMBER
    assert stream.get_number() == 2.0
    assert stream.next() is JsonType.OBJECT_END
    assert stream.next() is JsonType.DONE


def test_empty_containers():
    assert events("[]") == [JsonType.ARRAY, JsonType.ARRAY_END]
    assert events("{}") == [JsonType.OBJECT, JsonType.OBJECT_END]


@pytest.mark.parametrize("text", ["-12", "0", "3.25", "1e3", "-2.5E-2", "7e+1", "10"])
def test_numbers(text):
    stream = JsonStream(text)
    assert stream.next() is JsonType.NUMBER
    assert stream.get_string() == text
    assert stream.get_number() == float(text)


def test_escapes():
    stream = JsonStream(r'"a\nb\t\"\\\/"')
    assert stream.next() is JsonType.STRING
    assert stream.get_string() == 'a\nb\t"\\/'


def test_unicode_escape_round_trip():
    stream = JsonStream('"\\u00e9"')
    stream.next()
    assert stream.get_string() == "\u00e9"


def test_surrogate_pair():
    stream = JsonStream('"\\ud83d\\ude00"')
    stream.next()
    assert stream.get_string() == "\U0001F600"


def test_raw_utf8_string():
    stream = JsonStream('"h\u00e9llo \u20ac"'.encode("utf-8"))
    stream.next()
    assert stream.get_string() == "h\u00e9llo \u20ac"


@pytest.mark.parametrize(
    "text",
    [
        "[1,]",
        '"abc',
        "tru",
        '"\\x"',
        '"\\udc00"',
        '"\\ud800x"',
        "{1:2}",
        '{"a" 1}',
        '{"a":1 "b":2}',
        b'"\xff"',
        b'"\xe0\x80\x80"',
        '"a\x01"',
        "-x",
        "1.",
        "1e",
        "@",
        "[}",
    ],
)
def test_invalid_input_raises(text):
    with pytest.raises(JsonError):
        list(JsonStream(text))


def test_error_messages():
    with pytest.raises(JsonError, match="unterminated string literal"):
        list(JsonStream('"abc'))
    with pytest.raises(JsonError, match="expected ':' after member name"):
        list(JsonStream('{"a" 1}'))


def test_error_is_sticky_until_reset():
    stream = JsonStream("[}")
    assert stream.next() is JsonType.ARRAY
    with pytest.raises(JsonError):
        stream.next()
    first = stream.error
    with pytest.raises(JsonError) as info:
        stream.next()
    assert str(info.value) == first
    stream.reset()
    assert stream.error is None


def test_peek_does_not_consume():
    stream = JsonStream("[true]")
    assert stream.peek() is JsonType.ARRAY
    assert stream.peek() is JsonType.ARRAY
    assert stream.next() is JsonType.ARRAY
    assert stream.next() is JsonType.TRUE


def test_skip_nested_values():
    stream = JsonStream('[[1,2],{"a":[3]}, 4]')
    assert stream.next() is JsonType.ARRAY
    assert stream.skip() is JsonType.ARRAY
    assert stream.skip() is JsonType.OBJECT
    assert stream.next() is JsonType.NUMBER
    assert stream.get_number() == 4.0
    assert stream.next() is JsonType.ARRAY_END


def test_skip_until():
    stream = JsonStream('[1, "x", 2]')
    assert stream.next() is JsonType.ARRAY
    assert stream.skip_until(JsonType.STRING) is JsonType.STRING
    assert stream.get_string() == "x"


def test_skip_until_reaches_done():
    stream = JsonStream("[1, 2]")
    assert stream.skip_until(JsonType.STRING) is JsonType.DONE


def test_depth_tracks_nesting():
    stream = JsonStream("[[[]]]")
    depths = []
    for _ in stream:
        depths.append(stream.depth)
    assert depths == [1, 2, 3, 2, 1, 0]


def test_context_outside_container():
    stream = JsonStream("5")
    assert stream.context() == (JsonType.DONE, 0)


def test_streaming_multiple_values():
    stream = JsonStream("1 2 3")
    assert stream.next() is JsonType.NUMBER
    assert stream.get_number() == 1.0
    assert stream.next() is JsonType.DONE
    stream.reset()
    assert stream.next() is JsonType.NUMBER
    assert stream.get_number() == 2.0


def test_non_streaming_rejects_trailing_data():
    stream = JsonStream("1 2", streaming=False)
    assert stream.next() is JsonType.NUMBER
    with pytest.raises(JsonError, match="expected end of text"):
        stream.next()


def test_non_streaming_allows_trailing_whitespace():
    stream = JsonStream("[1] \n\t", streaming=False)
    assert list(stream) == [JsonType.ARRAY, JsonType.NUMBER, JsonType.ARRAY_END]


def test_empty_input():
    assert JsonStream("").next() is JsonType.DONE
    with pytest.raises(JsonError, match="unexpected end of text"):
        JsonStream("", streaming=False).next()


def test_line_numbers():
    stream = JsonStream("[\n1,\n2]")
    list(stream)
    assert stream.lineno == 3


def test_file_source_matches_buffer():
    text = b'{"a": [1, "b", null]}'
    assert list(JsonStream(io.BytesIO(text))) == list(JsonStream(text))


def test_source_access_after_value():
    stream = JsonStream("1\nx")
    assert stream.next() is JsonType.NUMBER
    assert stream.source_peek() == ord("\n")
    assert stream.source_get() == ord("\n")
    assert stream.lineno == 2
    assert stream.source_get() == ord("x")
    assert stream.source_get() is None


def test_position_counts_bytes():
    stream = JsonStream("true")
    stream.next()
    assert stream.position == len("true")


def test_rejects_unsupported_source():
    with pytest.raises(TypeError):
        JsonStream(42)