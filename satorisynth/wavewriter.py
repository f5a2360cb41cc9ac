"""Writing mono or multi-channel float samples as 16-bit PCM WAV files."""

from __future__ import annotations

import os
import struct
from dataclasses import dataclass
from typing import Iterable, Sequence

_INT16_MAX = 32767
_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


class WaveWriteError(OSError):
    """Raised when a WAV file cannot be written."""


@dataclass
class WaveFormat:
    sample_rate: int = 44100
    bits_per_sample: int = 16
    channels: int = 1


def quantize(samples: Iterable[float]) -> list[int]:
    """Clamp samples to [-1, 1] and scale them to signed 16-bit integers."""
    return [int(max(-1.0, min(1.0, sample)) * _INT16_MAX) for sample in samples]


def write_wave(
    path: str | os.PathLike[str],
    samples: Sequence[float],
    fmt: WaveFormat | None = None,
) -> None:
    """Write ``samples`` to ``path`` as a PCM WAV file."""
    fmt = fmt or WaveFormat()
    pcm = quantize(samples)
    bytes_per_sample = fmt.bits_per_sample // 8
    block_align = (fmt.channels * bytes_per_sample) & 0xFFFF
    byte_rate = (fmt.sample_rate * block_align) & 0xFFFFFFFF
    data_size = (len(pcm) * bytes_per_sample) & 0xFFFFFFFF
    header = _HEADER.pack(
        b"RIFF",
        (36 + data_size) & 0xFFFFFFFF,
        b"WAVE",
        b"fmt ",
        16,
        1,
        fmt.channels & 0xFFFF,
        fmt.sample_rate & 0xFFFFFFFF,
        byte_rate,
        block_align,
        fmt.bits_per_sample & 0xFFFF,
        b"data",
        data_size,
    )
    payload = struct.pack(f"<{len(pcm)}h", *pcm)

    try:
        stream = open(path, "wb")
    except OSError as exc:
        raise WaveWriteError(f"cannot open output file: {os.fspath(path)}") from exc
    try:
        with stream:
            stream.write(header)
            stream.write(payload)
    except OSError as exc:
        raise WaveWriteError(f"failed to write WAV file: {os.fspath(path)}") from exc