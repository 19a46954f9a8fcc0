from __future__ import annotations

import numpy as np
import pytest

from telephony.g711 import ULAW_TO_PCM16, decode_sample, ulaw_decode, ulaw_to_pcm16le


def test_decode_is_deterministic_over_all_bytes() -> None:
    first = [decode_sample(value) for value in range(256)]
    second = [decode_sample(value) for value in range(256)]
    assert first == second
    assert all(-32768 <= sample <= 32767 for sample in first)


@pytest.mark.parametrize("silence", [0xFF, 0x7F])
def test_silence_bytes_decode_to_zero(silence: int) -> None:
    assert decode_sample(silence) == 0


@pytest.mark.parametrize(
    ("ulaw", "expected"),
    [
        (0x00, -32124),
        (0x80, 32124),
        (0x7E, -8),
        (0xFE, 8),
        (0x0F, -16764),
    ],
)
def test_decode_matches_g711_reference_points(ulaw: int, expected: int) -> None:
    assert decode_sample(ulaw) == expected


def test_top_bit_clear_decodes_negative() -> None:
    assert all(decode_sample(value) <= 0 for value in range(0x00, 0x80))
    assert all(decode_sample(value) >= 0 for value in range(0x80, 0x100))


def test_lookup_table_agrees_with_scalar_decoder() -> None:
    assert ULAW_TO_PCM16.tolist() == [decode_sample(value) for value in range(256)]


def test_ulaw_decode_preserves_order_and_count() -> None:
    frame = bytes([0x00, 0xFF, 0x80, 0x7E])
    pcm = ulaw_decode(frame)
    assert pcm.dtype == np.int16
    assert pcm.tolist() == [-32124, 0, 32124, -8]


@pytest.mark.parametrize("size", [0, 1, 160, 321])
def test_pcm_buffer_is_twice_the_frame_length(size: int) -> None:
    frame = bytes(range(256)) * 2
    assert len(ulaw_to_pcm16le(frame[:size])) == 2 * size


def test_pcm_bytes_are_little_endian() -> None:
    # 32124 == 0x7D7C
    assert ulaw_to_pcm16le(b"\x80") == b"\x7c\x7d"
