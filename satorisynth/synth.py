"""Offline rendering of note lists with independent plucked strings."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from .karplus import KarplusStrongString, StringConfig


@dataclass
class NoteEvent:
    frequency: float = 440.0
    duration: float = 1.0
    start_time: float = 0.0


def find_peak(samples: Iterable[float]) -> float:
    """Return the largest absolute sample value, or 0.0 for no samples."""
    return max((abs(sample) for sample in samples), default=0.0)


def normalize(samples: Sequence[float], peak: float) -> list[float]:
    """Scale samples down so that ``peak`` becomes 1.0; louder peaks only."""
    if peak <= 1.0 or peak == 0.0:
        return list(samples)
    inv_peak = 1.0 / peak
    return [sample * inv_peak for sample in samples]


def _mix(parts: Sequence[tuple[int, Sequence[float]]]) -> list[float]:
    if not parts:
        return []
    length = max(offset + len(samples) for offset, samples in parts)
    buffer = [0.0] * length
    for offset, samples in parts:
        for position, sample in enumerate(samples, start=offset):
            buffer[position] += sample
    return buffer


class KarplusStrongSynth:
    """Renders notes offline, each on its own freshly plucked string."""

    def __init__(self, config: StringConfig | None = None) -> None:
        self._config = replace(config) if config is not None else StringConfig()

    @property
    def config(self) -> StringConfig:
        return self._config

    def render_notes(self, notes: Sequence[NoteEvent]) -> list[float]:
        """Mix every note at its start time; the result peaks at most at 1.0."""
        if not notes:
            return []
        sample_rate = self._config.sample_rate
        max_time = max(0.0, max(note.start_time + note.duration for note in notes))
        total = int(max(0.0, math.ceil(max_time * sample_rate)))
        if total == 0:
            return []

        parts: list[tuple[int, list[float]]] = []
        for note in notes:
            string = KarplusStrongString(self._config)
            samples = string.pluck(note.frequency, note.duration, 1.0)
            if not samples:
                continue
            offset = int(max(0.0, math.floor(note.start_time * sample_rate)))
            parts.append((offset, samples))

        mixed = _mix(parts)
        return normalize(mixed, find_peak(mixed))

    def render_chord(
        self, frequencies: Iterable[float], duration_seconds: float
    ) -> list[float]:
        """Render all frequencies starting together for the same duration."""
        notes = [NoteEvent(freq, duration_seconds, 0.0) for freq in frequencies]
        return self.render_notes(notes)