"""Sound playback channels: state machine, volume and pan mixing, resampling."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from domecore.audioengine import (
    CHANNELS,
    SAMPLE_RATE,
    AudioEngine,
    AudioType,
    ChannelRef,
    ChannelState,
)


def _lerp(start: float, end: float, fraction: float) -> float:
    return start + (end - start) * fraction


def resample(
    samples: list[float], source_frequency: int, target_frequency: int
) -> list[float]:
    """Convert interleaved stereo samples to another rate.

    Samples are repeated to the least common rate, then decimated. The result
    always holds ``frames * L // M + 1`` frames; any frame past the decimated
    data is silent.
    """
    if source_frequency <= 0 or target_frequency <= 0:
        raise ValueError("frequencies must be positive")
    divisor = math.gcd(source_frequency, target_frequency)
    up = target_frequency // divisor
    down = source_frequency // divisor
    frames = len(samples) // CHANNELS
    spread = frames * up
    dest_frames = spread // down + 1
    output: list[float] = []
    for spread_index in range(0, spread, down):
        source = CHANNELS * (spread_index // up)
        output.extend(samples[source : source + CHANNELS])
    output.extend([0.0] * (dest_frames * CHANNELS - len(output)))
    return output


@dataclass
class AudioData:
    """Decoded audio held as interleaved stereo samples in [-1, 1)."""

    buffer: list[float] = field(default_factory=list)
    frequency: int = SAMPLE_RATE
    audio_type: AudioType = AudioType.UNKNOWN

    @property
    def length(self) -> int:
        """Number of stereo frames."""
        return len(self.buffer) // CHANNELS


@dataclass
class ChannelProps:
    """Playback settings of a channel; ``position`` is the next frame to play."""

    loop: bool = False
    volume: float = 0.0
    pan: float = 0.0
    position: int = 0
    reset_position: bool = False


class AudioChannel:
    """Plays one piece of audio through an :class:`AudioEngine` channel.

    Changes go to ``new`` and take effect when committed during an update;
    the mixer reads ``current``.
    """

    def __init__(self, sound_id: str, audio: Optional[AudioData] = None) -> None:
        self.sound_id = sound_id
        self.audio = audio
        self.current = ChannelProps()
        self.new = ChannelProps()
        self.actual_volume = 0.0
        self.actual_pan = 0.0
        self.fade = False

    @property
    def volume(self) -> float:
        return self.new.volume

    @volume.setter
    def volume(self, value: float) -> None:
        self.new.volume = min(max(0.0, float(value)), 1.0)

    @property
    def pan(self) -> float:
        return self.new.pan

    @pan.setter
    def pan(self, value: float) -> None:
        self.new.pan = min(max(-1.0, float(value)), 1.0)

    @property
    def loop(self) -> bool:
        return self.new.loop

    @loop.setter
    def loop(self, value: bool) -> None:
        self.new.loop = bool(value)

    @property
    def position(self) -> int:
        return self.new.position

    def seek(self, position: int) -> None:
        """Request playback to continue from ``position`` at the next commit."""
        upper = self.audio.length if self.audio is not None else max(position, 0)
        self.new.position = min(max(0, int(position)), upper)
        self.new.reset_position = True

    def commit(self) -> None:
        """Make the requested settings current, keeping the play position."""
        position = self.current.position
        if self.new.reset_position:
            position = self.new.position
            self.new.reset_position = False
        self.current = replace(self.new, position=position)
        self.new = replace(self.current)

    def update(self, engine: AudioEngine, ref: ChannelRef) -> None:
        """Advance the channel's state machine by one step."""
        base = engine.get(ref)
        if base is None:
            return
        state = base.state
        if state is ChannelState.INITIALIZE:
            base.state = state = ChannelState.TO_PLAY
        if state in (ChannelState.DEVIRTUALIZE, ChannelState.TO_PLAY):
            if self.audio is None:
                base.state = ChannelState.LOADING
            else:
                base.state = ChannelState.PLAYING
                self.commit()
        elif state is ChannelState.LOADING:
            if self.audio is not None:
                base.state = ChannelState.TO_PLAY
        elif state is ChannelState.PLAYING:
            self.commit()
            if not base.is_playing() or base.stop_requested:
                base.state = ChannelState.STOPPING
        elif state is ChannelState.STOPPING:
            if self.fade:
                self.new.volume -= 0.1
            else:
                self.new.volume = 0.0
            if self.new.volume <= 0:
                self.new.volume = 0.0
                base.state = ChannelState.STOPPED
            self.commit()
        elif state is ChannelState.STOPPED:
            self.commit()

    def mix(self, engine: AudioEngine, ref: ChannelRef, frames: int) -> list[float]:
        """Produce ``frames`` interleaved stereo frames of output."""
        output = [0.0] * (frames * CHANNELS)
        base = engine.get(ref)
        if base is None or self.audio is None:
            return output
        buffer = self.audio.buffer
        length = self.audio.length
        current = self.current
        if current.loop and current.position >= length:
            current.position = 0
        if length == 0:
            to_write = 0
        elif current.loop:
            to_write = frames
        else:
            to_write = min(frames, max(0, length - current.position))

        volume = current.volume
        target_pan = current.pan
        actual_volume = self.actual_volume
        actual_pan = self.actual_pan
        blend_volume = actual_volume != volume
        blend_pan = actual_pan != target_pan

        for i in range(to_write):
            # Ramp volume and pan over the buffer to avoid clicks.
            fraction = i / to_write
            level = _lerp(actual_volume, volume, fraction) if blend_volume else actual_volume
            pan = _lerp(actual_pan, target_pan, fraction) if blend_pan else actual_pan
            angle = (pan + 1.0) * math.pi / 4.0
            read = current.position * CHANNELS
            output[CHANNELS * i] = buffer[read] * math.cos(angle) * level
            output[CHANNELS * i + 1] = buffer[read + 1] * math.sin(angle) * level
            current.position += 1
            if current.position >= length:
                if current.loop:
                    current.position = 0
                else:
                    break

        self.actual_volume = current.volume
        self.actual_pan = current.pan
        if not current.loop and current.position >= length:
            base.state = ChannelState.STOPPED
        return output

    def finish(self) -> None:
        """Release the audio once the channel has stopped."""
        self.audio = None


def play_sound(
    engine: AudioEngine, sound_id: str, audio: Optional[AudioData] = None
) -> ChannelRef:
    """Create an :class:`AudioChannel` and register it with ``engine``.

    The channel object is the channel's userdata.
    """
    channel = AudioChannel(sound_id, audio)

    def mix(ref: ChannelRef, frames: int) -> list[float]:
        return channel.mix(engine, ref, frames)

    def update(ref: ChannelRef, context: Any) -> None:
        channel.update(engine, ref)

    def finish(ref: ChannelRef, context: Any) -> None:
        channel.finish()

    return engine.channel_init(mix, update, finish, channel)