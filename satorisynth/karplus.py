"""Karplus-Strong plucked string model."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, replace
from enum import Enum

from .filters import FilterChain, FirstOrderAllPass, OnePoleLowPass


class NoiseType(Enum):
    WHITE = "white"
    BINARY = "binary"


@dataclass
class StringConfig:
    sample_rate: float = 44100.0
    decay: float = 0.996
    brightness: float = 0.5
    excitation_brightness: float = 0.6
    excitation_velocity: float = 0.5
    pick_position: float = 0.5
    dispersion_amount: float = 0.12
    body_tone: float = 0.5
    body_size: float = 0.5
    room_amount: float = 0.0
    noise_type: NoiseType = NoiseType.WHITE
    enable_lowpass: bool = True
    seed: int = 0  # 0 picks a random seed


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _clamp01(value: float) -> float:
    return _clamp(value, 0.0, 1.0)


def _clamp_pick(value: float) -> float:
    return _clamp(value, 0.001, 0.999)


def _round_half_away(value: float) -> float:
    return math.copysign(math.floor(abs(value) + 0.5), value)


class KarplusStrongString:
    """A single plucked string driven sample by sample or rendered offline."""

    def __init__(self, config: StringConfig | None = None) -> None:
        self._config = replace(config) if config is not None else StringConfig()
        self._rng_seed = self._config.seed
        if self._rng_seed == 0:
            self._rng_seed = random.SystemRandom().getrandbits(32)
        self._delay: list[float] = []
        self._read_index = 0
        self._decay_factor = 1.0
        self._active = False
        self._last_output = 0.0
        self._chain: FilterChain | None = None
        self._frequency = 440.0
        self._velocity = 1.0
        self._pick_position = 0.5
        self._excitation_color = 0.6
        self._configure_filters()

    @property
    def config(self) -> StringConfig:
        return self._config

    @property
    def active(self) -> bool:
        return self._active

    @property
    def last_output(self) -> float:
        return self._last_output

    def update_config(self, config: StringConfig) -> None:
        self._config = replace(config)
        self._configure_filters()

    def pluck(
        self, frequency: float, duration_seconds: float, velocity: float = 1.0
    ) -> list[float]:
        """Render a whole note offline; empty if the inputs make no sound."""
        sample_rate = self._config.sample_rate
        if frequency <= 0.0 or duration_seconds <= 0.0 or sample_rate <= 0.0:
            return []
        total = int(max(0.0, math.floor(duration_seconds * sample_rate)))
        if total == 0:
            return []
        self.start(frequency, velocity)
        if not self._active:
            return []
        output = [self.process_sample() for _ in range(total)]
        self._active = False
        self._last_output = 0.0
        return output

    def start(self, frequency: float, velocity: float = 1.0) -> None:
        """Excite the string so that process_sample produces a note."""
        sample_rate = self._config.sample_rate
        if frequency <= 0.0 or sample_rate <= 0.0:
            self._active = False
            return

        self._frequency = frequency
        self._velocity = _clamp01(velocity)
        self._pick_position = self._effective_pick_position()
        self._excitation_color = self._compute_excitation_color()
        self._configure_filters()

        period = int(max(2.0, _round_half_away(sample_rate / frequency)))
        self._delay = [0.0] * period
        self._read_index = 0
        self._decay_factor = _clamp01(self._config.decay)
        self._last_output = 0.0

        self._fill_excitation_noise()
        self._apply_pick_position_shape()
        self._apply_excitation_color()

        if self._chain is not None:
            self._chain.reset()
        self._active = True

    def process_sample(self) -> float:
        """Advance the string by one sample; 0.0 while it is not started."""
        if not self._active or not self._delay:
            return 0.0
        size = len(self._delay)
        current = self._delay[self._read_index]
        following = self._delay[(self._read_index + 1) % size]
        averaged = 0.5 * (current + following)
        filtered = self._chain.process(averaged) if self._chain else averaged
        self._delay[self._read_index] = self._decay_factor * filtered
        self._read_index = (self._read_index + 1) % size
        self._last_output = current
        return current

    def _fill_excitation_noise(self) -> None:
        rng = random.Random(self._rng_seed)
        # Advance the seed so the next pluck gets fresh noise.
        self._rng_seed = rng.getrandbits(32)
        if self._config.noise_type is NoiseType.BINARY:
            self._delay = [1.0 if rng.random() < 0.5 else -1.0 for _ in self._delay]
        else:
            self._delay = [rng.uniform(-1.0, 1.0) for _ in self._delay]

    def _apply_pick_position_shape(self) -> None:
        size = len(self._delay)
        if size < 3:
            return
        pick = _clamp_pick(self._pick_position)
        pick_index = int(pick * (size - 1))
        if pick_index == 0 or pick_index >= size - 1:
            return
        right_count = size - 1 - pick_index
        self._delay = [
            sample * (i / pick_index if i <= pick_index else (size - 1 - i) / right_count)
            for i, sample in enumerate(self._delay)
        ]

    def _apply_excitation_color(self) -> None:
        if not self._delay:
            return
        color = _clamp01(self._excitation_color)
        if color <= 0.01:
            return
        # Split into low and high bands with a one-pole filter, then tilt.
        alpha = _clamp(0.05 + 0.4 * color, 0.01, 0.95)
        tilt = (color - 0.5) * 1.2
        low_gain = 1.0 - 0.4 * tilt
        high_gain = 1.0 + 0.6 * tilt
        state = 0.0
        colored = []
        for sample in self._delay:
            state = alpha * sample + (1.0 - alpha) * state
            colored.append(state * low_gain + (sample - state) * high_gain)
        self._delay = colored

    def _effective_pick_position(self) -> float:
        sensitivity = _clamp01(self._config.excitation_velocity)
        offset = (0.5 - self._velocity) * 0.25 * sensitivity
        return _clamp_pick(self._config.pick_position + offset)

    def _compute_excitation_color(self) -> float:
        sensitivity = _clamp01(self._config.excitation_velocity)
        base = _clamp01(self._config.excitation_brightness)
        delta = (self._velocity - 0.5) * 0.6 * sensitivity
        return _clamp01(base + delta)

    def _configure_filters(self) -> None:
        dispersion = self._dispersion_coefficients()
        need_lowpass = self._config.enable_lowpass
        if not dispersion and not need_lowpass:
            self._chain = None
            return
        if self._chain is None:
            self._chain = FilterChain()
        else:
            self._chain.clear()
        for coefficient in dispersion:
            self._chain.add(FirstOrderAllPass(coefficient))
        if need_lowpass:
            self._chain.add(OnePoleLowPass(_clamp01(self._config.brightness)))

    def _dispersion_coefficients(self) -> list[float]:
        amount = _clamp01(self._config.dispersion_amount)
        sample_rate = self._config.sample_rate
        if amount <= 0.0001 or sample_rate <= 0.0:
            return []
        nyquist = sample_rate * 0.5
        freq = min(max(self._frequency, 10.0), nyquist)
        norm_freq = freq / nyquist
        scaled = amount * 0.7
        coeff1 = _clamp(scaled * (0.35 + 0.65 * norm_freq), -0.85, 0.85)
        coeff2 = _clamp(scaled * 0.6 * (0.4 + 0.6 * norm_freq), -0.8, 0.8)
        return [coeff1, coeff2]