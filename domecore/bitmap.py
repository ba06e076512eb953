"""RGBA bitmaps decoded from PNG, JPEG or BMP data."""

from __future__ import annotations

import io
import os
import struct
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

_FORMATS = ["PNG", "JPEG", "BMP"]


@dataclass(frozen=True)
class Color:
    """A 32-bit colour; the red component sits in the lowest byte."""

    value: int = 0

    @classmethod
    def from_rgba(cls, r: int, g: int, b: int, a: int = 255) -> Color:
        return cls((r & 0xFF) | (g & 0xFF) << 8 | (b & 0xFF) << 16 | (a & 0xFF) << 24)

    @property
    def r(self) -> int:
        return self.value & 0xFF

    @property
    def g(self) -> int:
        return self.value >> 8 & 0xFF

    @property
    def b(self) -> int:
        return self.value >> 16 & 0xFF

    @property
    def a(self) -> int:
        return self.value >> 24 & 0xFF


class BitmapError(Exception):
    """An image could not be loaded."""


class Bitmap:
    """A width by height grid of colours, stored row by row."""

    def __init__(self, width: int, height: int, pixels: list[Color] | None = None) -> None:
        if width < 0 or height < 0:
            raise ValueError("bitmap dimensions must not be negative")
        if pixels is None:
            pixels = [Color()] * (width * height)
        elif len(pixels) != width * height:
            raise ValueError(f"expected {width * height} pixels, got {len(pixels)}")
        self.width = width
        self.height = height
        self.channels = 4
        self.pixels = list(pixels)

    @classmethod
    def from_bytes(cls, data: bytes) -> Bitmap:
        """Decode a PNG, JPEG or BMP image held in memory."""
        try:
            with Image.open(io.BytesIO(data), formats=_FORMATS) as image:
                channels = len(image.getbands())
                rgba = image.convert("RGBA")
                width, height = rgba.size
                raw = rgba.tobytes()
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise BitmapError(str(exc) or "unable to decode image") from exc
        pixels = [Color(value) for (value,) in struct.iter_unpack("<I", raw)]
        bitmap = cls(width, height, pixels)
        bitmap.channels = channels
        return bitmap

    @classmethod
    def from_file(cls, path: str | os.PathLike[str]) -> Bitmap:
        try:
            with open(path, "rb") as handle:
                data = handle.read()
        except OSError as exc:
            raise BitmapError(exc.strerror or str(exc)) from exc
        return cls.from_bytes(data)

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} bitmap")
        return y * self.width + x

    def pget(self, x: int, y: int) -> Color:
        return self.pixels[self._index(x, y)]

    def pset(self, x: int, y: int, color: Color) -> None:
        self.pixels[self._index(x, y)] = color