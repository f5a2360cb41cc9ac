"""Command line renderer: plucks notes and writes them to a WAV file."""

from __future__ import annotations

import math
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from .engine import Event, EventType, StringSynthEngine
from .karplus import NoiseType
from .params import ParamId, get_param_info
from .synth import NoteEvent, find_peak, normalize
from .wavewriter import WaveFormat, WaveWriteError, write_wave

_NUMBER = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)

_USAGE = (
    "usage: satorisynth [--freq 440] [--notes 440[:start[:dur]],660] [--duration 2.0] "
    "[--samplerate 44100] [--decay 0.996] [--brightness 0.5] "
    "[--dispersion 0.12] [--exciteColor 0.6] [--exciteVel 0.5] [--pickpos 0.5] "
    "[--bodyTone 0.5] [--bodySize 0.5] [--room 0.0] [--noise white|binary] "
    "[--filter lowpass|none] [--release 0.35] [--seed 1234] [--output out.wav]"
)

_BLOCK_FRAMES = 512


def _default(param_id: ParamId) -> float:
    return get_param_info(param_id).default_value


@dataclass
class AppConfig:
    frequency: float = 440.0
    notes: list[NoteEvent] = field(default_factory=list)
    duration: float = 2.0
    sample_rate: float = 44100.0
    decay: float = 0.996
    brightness: float = 0.5
    dispersion_amount: float = _default(ParamId.DISPERSION_AMOUNT)
    excitation_brightness: float = _default(ParamId.EXCITATION_BRIGHTNESS)
    excitation_velocity: float = _default(ParamId.EXCITATION_VELOCITY)
    pick_position: float = 0.5
    body_tone: float = _default(ParamId.BODY_TONE)
    body_size: float = _default(ParamId.BODY_SIZE)
    room_amount: float = _default(ParamId.ROOM_AMOUNT)
    enable_lowpass: bool = True
    noise_type: NoiseType = NoiseType.WHITE
    seed: int = 0
    amp_release: float = _default(ParamId.AMP_RELEASE)
    output: Path = Path("satori_demo.wav")
    show_help: bool = False


def _parse_number(text: str) -> float | None:
    match = _NUMBER.match(text)
    return float(match.group(1)) if match else None


def _round_half_away(value: float) -> float:
    return math.copysign(math.floor(abs(value) + 0.5), value)


def parse_note_list(csv: str, default_duration: float) -> list[NoteEvent]:
    """Parse ``freq[:start[:duration]]`` items separated by commas.

    Items that do not parse, or have a non-positive frequency or duration,
    are skipped; negative start times become zero.
    """
    notes: list[NoteEvent] = []
    for token in csv.split(","):
        if not token:
            continue
        segments = token.split(":")
        freq = _parse_number(segments[0])
        if freq is None:
            continue
        start = 0.0
        duration = default_duration
        if len(segments) >= 2 and segments[1]:
            parsed = _parse_number(segments[1])
            if parsed is None:
                continue
            start = parsed
        if len(segments) >= 3 and segments[2]:
            parsed = _parse_number(segments[2])
            if parsed is None:
                continue
            duration = parsed
        if freq <= 0.0 or duration <= 0.0:
            continue
        notes.append(NoteEvent(freq, duration, max(0.0, start)))
    return notes


def parse_args(argv: Sequence[str]) -> AppConfig:
    """Build the configuration from ``--key value`` pairs; bad values are ignored."""
    config = AppConfig()
    options: dict[str, str] = {}
    args = iter(argv)
    remaining = list(argv)
    position = 0
    while position < len(remaining):
        arg = remaining[position]
        if arg in ("--help", "-h"):
            config.show_help = True
            return config
        if arg.startswith("--") and position + 1 < len(remaining):
            options[arg[2:]] = remaining[position + 1]
            position += 1
        position += 1
    del args

    def number(key: str) -> float | None:
        return _parse_number(options[key]) if key in options else None

    float_fields = (
        ("duration", "duration"),
        ("samplerate", "sample_rate"),
        ("freq", "frequency"),
    )
    for key, attr in float_fields:
        value = number(key)
        if value is not None:
            setattr(config, attr, value)

    if "notes" in options:
        config.notes = parse_note_list(options["notes"], config.duration)

    for key, attr in (
        ("decay", "decay"),
        ("brightness", "brightness"),
        ("dispersion", "dispersion_amount"),
        ("exciteColor", "excitation_brightness"),
        ("exciteVel", "excitation_velocity"),
        ("pickpos", "pick_position"),
        ("bodyTone", "body_tone"),
        ("bodySize", "body_size"),
        ("room", "room_amount"),
    ):
        value = number(key)
        if value is not None:
            setattr(config, attr, value)

    if "noise" in options:
        config.noise_type = (
            NoiseType.BINARY if options["noise"].lower() == "binary" else NoiseType.WHITE
        )
    if "filter" in options:
        config.enable_lowpass = options["filter"].lower() != "none"

    release = number("release")
    if release is not None:
        config.amp_release = release

    seed = number("seed")
    if seed is not None and math.isfinite(seed):
        config.seed = int(seed) & 0xFFFFFFFF

    if "output" in options:
        config.output = Path(options["output"])
    return config


def render_with_engine(
    engine: StringSynthEngine,
    notes: Sequence[NoteEvent],
    sample_rate: float,
    tail_seconds: float,
) -> list[float]:
    """Schedule every note on ``engine`` and render them, plus a tail, in mono."""
    if not notes or sample_rate <= 0.0:
        return []
    max_time = max(0.0, max(note.start_time + note.duration for note in notes))
    total_seconds = max_time + max(0.0, tail_seconds)
    total_frames = int(max(0.0, math.ceil(total_seconds * sample_rate)))
    if total_frames == 0:
        return []

    for note_id, note in enumerate(notes, start=1):
        start_frame = int(max(0.0, _round_half_away(note.start_time * sample_rate)))
        duration_frames = int(max(0.0, _round_half_away(note.duration * sample_rate)))
        engine.enqueue_event_at(
            Event(
                type=EventType.NOTE_ON,
                note_id=note_id,
                frequency=note.frequency,
                velocity=1.0,
            ),
            start_frame,
        )
        engine.enqueue_event_at(
            Event(type=EventType.NOTE_OFF, note_id=note_id),
            start_frame + duration_frames,
        )

    samples: list[float] = []
    while len(samples) < total_frames:
        frames = min(_BLOCK_FRAMES, total_frames - len(samples))
        samples.extend(engine.process(frames, 1))
    return samples


def main(argv: Sequence[str] | None = None) -> int:
    """Render the requested notes to a WAV file; return the exit status."""
    config = parse_args(sys.argv[1:] if argv is None else argv)
    if config.show_help:
        print(_USAGE)
        return 0

    engine = StringSynthEngine()
    engine.set_sample_rate(config.sample_rate)
    for param_id, value in (
        (ParamId.DECAY, config.decay),
        (ParamId.BRIGHTNESS, config.brightness),
        (ParamId.DISPERSION_AMOUNT, config.dispersion_amount),
        (ParamId.EXCITATION_BRIGHTNESS, config.excitation_brightness),
        (ParamId.EXCITATION_VELOCITY, config.excitation_velocity),
        (ParamId.PICK_POSITION, config.pick_position),
        (ParamId.BODY_TONE, config.body_tone),
        (ParamId.BODY_SIZE, config.body_size),
        (ParamId.ROOM_AMOUNT, config.room_amount),
        (ParamId.ENABLE_LOWPASS, 1.0 if config.enable_lowpass else 0.0),
        (ParamId.NOISE_TYPE, 1.0 if config.noise_type is NoiseType.BINARY else 0.0),
        (ParamId.MASTER_GAIN, 1.0),
        (ParamId.AMP_RELEASE, config.amp_release),
    ):
        engine.set_param(param_id, value)

    string_config = engine.string_config()
    string_config.seed = config.seed
    engine.set_config(string_config)

    notes = list(config.notes) or [NoteEvent(config.frequency, config.duration, 0.0)]
    tail = max(0.5, engine.get_param(ParamId.AMP_RELEASE) * 4.0)
    samples = render_with_engine(engine, notes, config.sample_rate, tail)
    samples = normalize(samples, find_peak(samples))

    if not samples:
        print("failed to generate samples, check the input parameters", file=sys.stderr)
        return 1

    try:
        write_wave(config.output, samples, WaveFormat(sample_rate=int(config.sample_rate)))
    except WaveWriteError as exc:
        print(exc, file=sys.stderr)
        return 1

    print(f"wrote WAV file: {config.output.absolute()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())