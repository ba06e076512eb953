"""Audio channel bookkeeping and mixing into interleaved stereo buffers."""

from __future__ import annotations

import enum
import itertools
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Optional

from domecore.channeltable import ChannelTable

SAMPLE_RATE = 44100
CHANNELS = 2
DEFAULT_BUFFER_SIZE = 2048


class ChannelState(enum.Enum):
    """Lifecycle states of a channel."""

    INVALID = enum.auto()
    INITIALIZE = enum.auto()
    TO_PLAY = enum.auto()
    DEVIRTUALIZE = enum.auto()
    LOADING = enum.auto()
    PLAYING = enum.auto()
    STOPPING = enum.auto()
    STOPPED = enum.auto()
    VIRTUALIZING = enum.auto()
    LAST = enum.auto()


_PLAYING_STATES = frozenset(
    (ChannelState.PLAYING, ChannelState.STOPPING, ChannelState.VIRTUALIZING)
)


class AudioType(enum.Enum):
    UNKNOWN = 0
    WAV = 1
    OGG = 2
    FLAC = 3
    MP3 = 4


@dataclass(frozen=True)
class ChannelRef:
    """Handle to a channel: its id and the engine that owns it."""

    id: int
    engine: Optional["AudioEngine"] = field(default=None, compare=False, repr=False)


MixFn = Callable[[ChannelRef, int], Sequence[float]]
Callback = Callable[[ChannelRef, Any], None]


@dataclass(eq=False)
class Channel:
    """A channel registered with an engine.

    ``mix(ref, frames)`` returns up to ``frames`` interleaved stereo frames;
    ``update(ref, context)`` runs once per engine update and
    ``finish(ref, context)`` once the channel has stopped.
    """

    ref: ChannelRef
    mix: MixFn
    update: Optional[Callback] = None
    finish: Optional[Callback] = None
    userdata: Any = None
    state: ChannelState = ChannelState.INITIALIZE
    stop_requested: bool = False

    def is_playing(self) -> bool:
        return self.state in _PLAYING_STATES

    def request_stop(self) -> None:
        self.stop_requested = True


def describe_audio_spec(
    frequency: int,
    channels: int,
    signed: bool,
    bits: int,
    little_endian: bool,
    audio_type: AudioType,
) -> str:
    """One-line description of an audio format, as printed in debug logs."""
    if audio_type is AudioType.WAV:
        kind = "WAV "
    elif audio_type is AudioType.OGG:
        kind = "OGG "
    else:
        kind = "Unknown audio file detected\n"
    layout = "Mono" if channels == 0 else "Stereo"
    signedness = "Signed " if signed else "Unsigned "
    order = "LSB" if little_endian else "MSB"
    return f"{kind}Audio: {frequency} Hz {layout} - {signedness}{bits} bit ({order})\n"


class AudioEngine:
    """Keeps pending and playing channels and mixes them on request."""

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        if buffer_size <= 0:
            raise ValueError("buffer size must be positive")
        self.buffer_size = buffer_size
        self.frequency = SAMPLE_RATE
        self.channels = CHANNELS
        self._next_id = 1  # zero means "no channel"
        self._pending = ChannelTable()
        self._playing = ChannelTable()
        self._lock = threading.RLock()
        self._paused = False
        self._closed = False

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def closed(self) -> bool:
        return self._closed

    def channel_init(
        self,
        mix: MixFn,
        update: Optional[Callback] = None,
        finish: Optional[Callback] = None,
        userdata: Any = None,
    ) -> ChannelRef:
        """Register a new channel; it starts playing after the next update."""
        ref = ChannelRef(self._next_id, self)
        self._next_id += 1
        self._pending.set(
            ref.id,
            Channel(ref=ref, mix=mix, update=update, finish=finish, userdata=userdata),
        )
        return ref

    def get(self, ref: ChannelRef) -> Optional[Channel]:
        if ref.id == 0:
            return None
        channel = self._playing.get(ref.id)
        if channel is None:
            channel = self._pending.get(ref.id)
        return channel

    def update(self, context: Any = None) -> None:
        """Promote pending channels, run their updates and drop stopped ones."""
        with self._lock:
            self._playing.add_all(self._pending)
            for channel in self._playing:
                if channel.update is not None:
                    channel.update(channel.ref, context)
                if channel.state is ChannelState.STOPPED:
                    if channel.finish is not None:
                        channel.finish(channel.ref, context)
                    self._playing.delete(channel.ref.id)
        self._pending.clear()

    def mix(self, frames: int) -> list[float]:
        """Mix ``frames`` stereo frames from every playing channel."""
        output = [0.0] * (frames * CHANNELS)
        with self._lock:
            if self._paused or self._closed:
                return output
            for channel in self._playing:
                if not channel.is_playing():
                    continue
                served = 0
                while channel.is_playing() and served < frames:
                    request = min(self.buffer_size, frames - served)
                    samples = channel.mix(channel.ref, request)
                    base = served * CHANNELS
                    for offset, sample in enumerate(
                        itertools.islice(samples, request * CHANNELS)
                    ):
                        output[base + offset] += sample
                    served += request
        return output

    def stop(self, ref: ChannelRef) -> None:
        channel = self.get(ref)
        if channel is not None:
            channel.request_stop()

    def stop_all(self) -> None:
        for channel in self._playing:
            channel.request_stop()
        for channel in self._pending:
            channel.request_stop()

    def get_data(self, ref: ChannelRef) -> Any:
        channel = self.get(ref)
        return channel.userdata if channel is not None else None

    def get_state(self, ref: ChannelRef) -> ChannelState:
        channel = self.get(ref)
        return channel.state if channel is not None else ChannelState.STOPPED

    def set_state(self, ref: ChannelRef, state: ChannelState) -> None:
        channel = self.get(ref)
        if channel is not None:
            channel.state = state

    def pause(self) -> None:
        with self._lock:
            self._paused = True

    def resume(self) -> None:
        with self._lock:
            self._paused = False

    def halt(self) -> None:
        """Stop output for good."""
        with self._lock:
            self._paused = True
            self._closed = True