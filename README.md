# domecore

Building blocks for a small game engine. Each module can be used on its own:

- `domecore.jsonstream`: a pull parser for JSON. `JsonStream` reads a `str`, `bytes` or a binary file object. It returns `JsonType` events one at a time through `next()` or by iteration. It can also `peek()`, `skip()` a whole value, `skip_until()` a given event and report its nesting `context()`. Malformed input raises `JsonError`. In streaming mode, which is the default, several top-level values can follow one another, and `reset()` moves on to the next one.
- `domecore.utf8`: the character helpers the parser uses: `encode_utf8`, `hex_value`, `utf8_sequence_length`, `is_legal_utf8`, `needs_escaping` and `is_json_space`.
- `domecore.tar`: `TarArchive` reads and writes classic 512-byte-block tar archives. It offers random access on seekable streams (`find`, `next`, `read_header`, `read_data`) and forward-only reading through `stream_read_header`, `stream_read_data` and `stream_next`. Failures raise `TarError`, which carries a `TarErrorCode`. `strerror` turns a code into a message.
- `domecore.bitmap`: `Bitmap` loads PNG, JPEG and BMP images into RGBA pixels, using Pillow. Pixels are read and set with `pget` and `pset`. `Color` packs a 32-bit colour with red in the lowest byte. Load failures raise `BitmapError`.
- `domecore.channeltable`: `ChannelTable`, an open-addressing hash table keyed by positive integer ids.
- `domecore.audioengine`: `AudioEngine` keeps pending and playing channels and runs their updates with `update()`. It mixes them into interleaved stereo float buffers with `mix(frames)`. `describe_audio_spec` formats a one-line description of an audio format.
- `domecore.audiochannel`: `AudioChannel` plays `AudioData` through an engine. It has a state machine, volume and pan that blend smoothly across a buffer, looping and seeking. `play_sound` registers a channel with an engine. `resample` converts interleaved stereo samples to another sample rate.

## Installing

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Examples

Reading JSON events:

```python
from domecore.jsonstream import JsonStream, JsonType

stream = JsonStream('{"a": [1, 2]}', streaming=False)
for event in stream:
    if event is JsonType.NUMBER:
        print(stream.get_number())
```

Writing and reading a tar archive:

```python
from domecore.tar import TarArchive

with TarArchive.open("out.tar", "w") as tar:
    tar.write_file_header("hello.txt", 5)
    tar.write_data(b"hello")
    tar.finalize()

with TarArchive.open("out.tar", "r") as tar:
    header = tar.find("hello.txt")
    print(tar.read_data(header.size))
```

Mixing a sound:

```python
from domecore.audioengine import AudioEngine
from domecore.audiochannel import AudioData, play_sound

engine = AudioEngine()
ref = play_sound(engine, "tone", AudioData([0.5, 0.5] * 100))
channel = engine.get_data(ref)
channel.volume = 1.0
engine.update()            # the channel starts playing
samples = engine.mix(64)   # 64 stereo frames, 128 floats
```

## What it does not do

`AudioEngine` does not open a sound device. `mix()` returns float samples, and sending them to speakers is up to the caller. The package also does not decode audio files: `AudioData` is built from samples that are already decoded. There is no renderer or window, and no command-line program.