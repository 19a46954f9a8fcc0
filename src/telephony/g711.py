"""G.711 mu-law expansion for Twilio Media Streams audio."""

from __future__ import annotations

import numpy as np

ULAW_BIAS = 0x84


def decode_sample(ulaw_byte: int) -> int:
    """Expand one mu-law byte to a signed 16-bit linear sample."""

    mu = ~ulaw_byte & 0xFF
    magnitude = ((mu & 0x0F) << 3) + ULAW_BIAS
    magnitude <<= (mu & 0x70) >> 4
    if mu & 0x80:
        return ULAW_BIAS - magnitude
    return magnitude - ULAW_BIAS


# All 256 inputs are valid, so a lookup table is the whole decoder.
ULAW_TO_PCM16 = np.array([decode_sample(value) for value in range(256)], dtype="<i2")
ULAW_TO_PCM16.setflags(write=False)


def ulaw_decode(ulaw_bytes: bytes) -> np.ndarray:
    """Decode G.711 mu-law bytes to PCM16 int16 array (one sample per byte)."""

    data = np.frombuffer(ulaw_bytes, dtype=np.uint8)
    return ULAW_TO_PCM16[data]


def ulaw_to_pcm16le(ulaw_bytes: bytes) -> bytes:
    """Decode mu-law bytes straight to little-endian PCM16 bytes (2 bytes per input byte)."""

    return ulaw_decode(ulaw_bytes).tobytes()
