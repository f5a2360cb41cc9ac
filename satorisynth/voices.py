"""Voice handling for the real-time engine: envelopes, body, room and stealing."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum, auto

from .filters import OnePoleLowPass
from .karplus import KarplusStrongString, StringConfig
from .params import ParamId, get_param_info

VOICE_SILENCE_THRESHOLD = 1e-5
ENERGY_DECAY = 0.995
ENVELOPE_FLOOR = 1e-5
DEFAULT_ATTACK_SECONDS = 0.004
_FLOAT_EPSILON = 1.1920929e-07


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _round_half_away(value: float) -> float:
    return math.copysign(math.floor(abs(value) + 0.5), value)


class BodyFilter:
    """Two-band tilt that colours the mix like an instrument body."""

    def __init__(self) -> None:
        self._low = OnePoleLowPass(0.1)
        self._sample_rate = 44100.0
        self._tone = 0.5
        self._size = 0.5
        self._low_gain = 1.0
        self._high_gain = 1.0

    def set_sample_rate(self, sample_rate: float) -> None:
        if sample_rate <= 0.0:
            return
        self._sample_rate = sample_rate
        self._update_coefficients()

    def set_params(self, tone: float, size: float) -> None:
        self._tone = _clamp(tone, 0.0, 1.0)
        self._size = _clamp(size, 0.0, 1.0)
        self._update_coefficients()

    def reset(self) -> None:
        self._low.reset()

    def process(self, value: float) -> float:
        low = self._low.process(value)
        high = value - low
        return low * self._low_gain + high * self._high_gain

    def _update_coefficients(self) -> None:
        cutoff = 180.0 + 800.0 * self._size
        self._low.alpha = _clamp(2.0 * math.pi * cutoff / self._sample_rate, 0.001, 0.99)
        tilt = (self._tone - 0.5) * 0.6
        self._low_gain = _clamp(1.0 - tilt, 0.6, 1.6)
        self._high_gain = _clamp(1.0 + tilt, 0.6, 1.6)


class RoomProcessor:
    """Short two-tap delay that widens a mono signal into stereo."""

    def __init__(self) -> None:
        self._buffer: list[float] = []
        self._write_index = 0
        self._short_delay = 1
        self._long_delay = 2
        self._sample_rate = 44100.0
        self._amount = 0.0
        self._wet_gain = 0.3
        self._dry_gain = 1.0
        self._damp = 0.4
        self._lp_state = 0.0

    def set_sample_rate(self, sample_rate: float) -> None:
        if sample_rate <= 0.0:
            return
        self._sample_rate = sample_rate
        size = int(max(8.0, math.ceil(sample_rate * 0.003)))
        self._buffer = [0.0] * size
        self._short_delay = int(max(1.0, _round_half_away(sample_rate * 0.0012)))
        self._long_delay = int(max(1.0, _round_half_away(sample_rate * 0.0019)))
        self._write_index = 0
        self._lp_state = 0.0

    def set_amount(self, amount: float) -> None:
        self._amount = _clamp(amount, 0.0, 1.0)
        self._wet_gain = 0.3 + 0.7 * self._amount
        self._dry_gain = 1.0 - 0.5 * self._amount
        self._damp = 0.25 + 0.35 * self._amount

    def reset(self) -> None:
        self._buffer = [0.0] * len(self._buffer)
        self._write_index = 0
        self._lp_state = 0.0

    def process(self, value: float) -> tuple[float, float]:
        """Return the (left, right) pair for one mono input sample."""
        if not self._buffer or self._amount <= 0.0001:
            return value, value
        size = len(self._buffer)
        self._buffer[self._write_index] = value
        tap_short = self._buffer[(self._write_index - self._short_delay) % size]
        tap_long = self._buffer[(self._write_index - self._long_delay) % size]
        self._write_index = (self._write_index + 1) % size

        self._lp_state = self._damp * tap_long + (1.0 - self._damp) * self._lp_state
        wet_left = 0.6 * tap_short + 0.4 * self._lp_state
        wet_right = 0.4 * tap_short + 0.6 * self._lp_state
        dry = self._dry_gain * value
        return dry + self._wet_gain * wet_left, dry + self._wet_gain * wet_right


class _Stage(Enum):
    IDLE = auto()
    ATTACK = auto()
    SUSTAIN = auto()
    RELEASE = auto()


class AmpEnvelope:
    """Linear attack, sustain at the target level, linear release."""

    def __init__(self) -> None:
        self._stage = _Stage.IDLE
        self._sample_rate = 44100.0
        self._attack_seconds = DEFAULT_ATTACK_SECONDS
        self._release_seconds = 0.35
        self._level = 0.0
        self._target = 1.0
        self._release_start = 0.0
        self._cursor = 0
        self._attack_samples = 0
        self._release_samples = 0

    @property
    def is_idle(self) -> bool:
        return self._stage is _Stage.IDLE

    @property
    def is_releasing(self) -> bool:
        return self._stage is _Stage.RELEASE

    @property
    def level(self) -> float:
        return self._level

    def set_sample_rate(self, sample_rate: float) -> None:
        if sample_rate > 0.0:
            self._sample_rate = sample_rate
        self._update_attack_samples()
        self._update_release_samples()

    def set_attack_seconds(self, seconds: float) -> None:
        self._attack_seconds = max(0.0, seconds)
        self._update_attack_samples()

    def set_release_seconds(self, seconds: float) -> None:
        self._release_seconds = max(0.0, seconds)
        self._update_release_samples()

    def note_on(self, target_level: float) -> None:
        self._target = max(0.0, target_level)
        self._cursor = 0
        if self._attack_samples == 0:
            self._level = self._target
            self._stage = _Stage.SUSTAIN
        else:
            self._level = 0.0
            self._stage = _Stage.ATTACK

    def note_off(self) -> None:
        if self._stage is _Stage.IDLE:
            return
        self._stage = _Stage.RELEASE
        self._cursor = 0
        self._update_release_samples()
        self._release_start = self._level
        if self._release_samples == 0:
            self._level = 0.0
            self._stage = _Stage.IDLE

    def next(self) -> float:
        """Advance one sample and return the new level."""
        if self._stage is _Stage.IDLE:
            self._level = 0.0
        elif self._stage is _Stage.ATTACK:
            if self._attack_samples == 0:
                self._level = self._target
                self._stage = _Stage.SUSTAIN
            else:
                t = (self._cursor + 1) / self._attack_samples
                self._level = self._target * min(1.0, t)
                self._cursor += 1
                if self._cursor >= self._attack_samples:
                    self._stage = _Stage.SUSTAIN
                    self._cursor = 0
        elif self._stage is _Stage.SUSTAIN:
            self._level = self._target
        else:
            if self._release_samples == 0:
                self._level = 0.0
                self._stage = _Stage.IDLE
            else:
                t = self._cursor / self._release_samples
                self._level = self._release_start * max(0.0, 1.0 - t)
                self._cursor += 1
                if self._cursor >= self._release_samples or self._level < ENVELOPE_FLOOR:
                    self._level = 0.0
                    self._stage = _Stage.IDLE
        return self._level

    def _update_attack_samples(self) -> None:
        self._attack_samples = int(
            max(0.0, _round_half_away(self._attack_seconds * self._sample_rate))
        )

    def _update_release_samples(self) -> None:
        self._release_samples = int(
            max(0.0, _round_half_away(self._release_seconds * self._sample_rate))
        )


def apply_expressive_mapping(
    velocity: float, frequency: float, base: StringConfig
) -> tuple[float, StringConfig]:
    """Derive a note's amplitude and string settings from velocity and pitch."""
    v = _clamp(velocity, 0.0, 1.0)
    ratio = frequency / 440.0 if frequency > 0.0 else 1.0
    key_track = _clamp(math.log2(ratio), -3.0, 3.0)
    amp = 0.45 + 0.65 * v

    brightness = get_param_info(ParamId.BRIGHTNESS).clamp(
        base.brightness + 0.28 * (v - 0.5) + 0.12 * key_track
    )
    decay = get_param_info(ParamId.DECAY).clamp(
        base.decay - 0.022 * (v - 0.5) - 0.012 * key_track
    )
    return amp, replace(base, brightness=brightness, decay=decay)


@dataclass
class Voice:
    string: KarplusStrongString = field(default_factory=KarplusStrongString)
    envelope: AmpEnvelope = field(default_factory=AmpEnvelope)
    note_id: int = -1
    frequency: float = 0.0
    velocity: float = 1.0
    age: int = 0
    energy: float = 0.0


def _steal_before(a: Voice, b: Voice) -> bool:
    if a.envelope.is_releasing != b.envelope.is_releasing:
        return a.envelope.is_releasing
    if abs(a.energy - b.energy) > _FLOAT_EPSILON:
        return a.energy < b.energy
    return a.age < b.age


class VoiceManager:
    """A bounded pool of voices with release-first, quietest-first stealing."""

    def __init__(
        self,
        max_voices: int,
        sample_rate: float,
        attack_seconds: float,
        release_seconds: float,
    ) -> None:
        self._max_voices = max_voices
        self._sample_rate = sample_rate if sample_rate > 0.0 else 44100.0
        self._attack_seconds = attack_seconds
        self._release_seconds = release_seconds
        self._voices: list[Voice] = []
        self._age_counter = 0

    @property
    def voices(self) -> tuple[Voice, ...]:
        return tuple(self._voices)

    def set_sample_rate(self, sample_rate: float) -> None:
        if sample_rate <= 0.0:
            return
        self._sample_rate = sample_rate
        for voice in self._voices:
            voice.envelope.set_sample_rate(sample_rate)

    def set_attack_seconds(self, seconds: float) -> None:
        self._attack_seconds = max(0.0, seconds)
        for voice in self._voices:
            voice.envelope.set_attack_seconds(self._attack_seconds)

    def set_release_seconds(self, seconds: float) -> None:
        self._release_seconds = max(0.0, seconds)
        for voice in self._voices:
            voice.envelope.set_release_seconds(self._release_seconds)

    def note_on(
        self, note_id: int, frequency: float, velocity: float, config: StringConfig
    ) -> None:
        if frequency <= 0.0:
            return
        voice = self._find(note_id) or self._allocate()
        if voice is None:
            return
        self._age_counter += 1
        voice.note_id = note_id
        voice.frequency = frequency
        voice.velocity = velocity
        voice.age = self._age_counter
        voice.energy = 0.0

        amp, voice_config = apply_expressive_mapping(velocity, frequency, config)
        voice_config.sample_rate = self._sample_rate
        voice.string.update_config(voice_config)
        voice.string.start(frequency, velocity)

        self._configure_envelope(voice.envelope)
        voice.envelope.note_on(amp)

    def note_off(self, note_id: int) -> None:
        if note_id < 0:
            return
        for voice in self._voices:
            if voice.note_id == note_id:
                voice.envelope.set_release_seconds(self._release_seconds)
                voice.envelope.note_off()

    def render_frame(self, master_gain: float) -> float:
        """Mix one sample of every sounding voice and drop silent ones."""
        mixed = 0.0
        for voice in self._voices:
            if voice.envelope.is_idle:
                continue
            env = voice.envelope.next()
            sample = voice.string.process_sample() * env * voice.velocity
            voice.energy = ENERGY_DECAY * voice.energy + (1.0 - ENERGY_DECAY) * abs(sample)
            mixed += sample
        self._voices = [
            voice
            for voice in self._voices
            if not (
                voice.envelope.is_idle
                or (voice.envelope.is_releasing and voice.energy < VOICE_SILENCE_THRESHOLD)
            )
        ]
        return mixed * master_gain

    def __len__(self) -> int:
        return len(self._voices)

    def _configure_envelope(self, envelope: AmpEnvelope) -> None:
        envelope.set_sample_rate(self._sample_rate)
        envelope.set_attack_seconds(self._attack_seconds)
        envelope.set_release_seconds(self._release_seconds)

    def _find(self, note_id: int) -> Voice | None:
        return next((voice for voice in self._voices if voice.note_id == note_id), None)

    def _allocate(self) -> Voice | None:
        if len(self._voices) < self._max_voices:
            voice = Voice()
            self._configure_envelope(voice.envelope)
            self._voices.append(voice)
            return voice
        candidate: Voice | None = None
        for voice in self._voices:
            if candidate is None or _steal_before(voice, candidate):
                candidate = voice
        return candidate