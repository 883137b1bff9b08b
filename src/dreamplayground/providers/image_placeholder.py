"""Placeholder image provider for offline runs and tests.

Streams a minimal solid-color equirectangular (2:1) PNG with no external
dependencies. Zero cost, instant generation.
"""

from __future__ import annotations

import hashlib
import struct
import zlib
from collections.abc import AsyncIterator

from dreamplayground.providers.image import ImageChunk, ImageResult

# Equirectangular panoramas are always 2:1; kept small for tests.
PLACEHOLDER_SIZE: tuple[int, int] = (512, 256)

# Night-sky palette, picked by prompt hash.
_PALETTE: list[tuple[int, int, int]] = [
    (46, 38, 92),  # indigo
    (92, 38, 80),  # plum
    (24, 64, 96),  # deep teal
    (110, 70, 40),  # amber dusk
    (30, 80, 60),  # moss
    (70, 40, 110),  # violet
]


def _make_png(width: int, height: int, r: int, g: int, b: int) -> bytes:
    """Generate a minimal solid-color RGB PNG in pure Python."""

    def _chunk(chunk_type: bytes, data: bytes) -> bytes:
        payload = chunk_type + data
        crc = struct.pack(">I", zlib.crc32(payload) & 0xFFFFFFFF)
        return struct.pack(">I", len(data)) + payload + crc

    sig = b"\x89PNG\r\n\x1a\n"
    ihdr = _chunk(b"IHDR", struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0))

    # Filter byte 0 + RGB triplets per row
    row = bytes([0]) + bytes([r, g, b]) * width
    idat = _chunk(b"IDAT", zlib.compress(row * height))

    return sig + ihdr + idat + _chunk(b"IEND", b"")


class PlaceholderImageProvider:
    """Image stream provider that produces solid-color panoramas.

    Emits one commentary chunk followed by one image chunk, mirroring the
    shape of a real streamed response. The color is chosen from the prompt
    hash, so the same prompt always produces the same image.
    """

    def __init__(self, size: tuple[int, int] = PLACEHOLDER_SIZE) -> None:
        self._size = size

    async def stream(self, prompt: str) -> AsyncIterator[ImageChunk]:
        width, height = self._size
        idx = int(hashlib.md5(prompt.encode()).hexdigest(), 16) % len(_PALETTE)
        r, g, b = _PALETTE[idx]

        yield ImageChunk(text="Painting a placeholder panorama.")
        yield ImageChunk(
            image=ImageResult(
                image_data=_make_png(width, height, r, g, b),
                content_type="image/png",
                provider_metadata={
                    "quality": "placeholder",
                    "size": f"{width}x{height}",
                    "color": f"#{r:02x}{g:02x}{b:02x}",
                    "prompt_preview": prompt[:80],
                },
            )
        )
