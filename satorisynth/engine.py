"""Real-time string synthesis engine driven by time-stamped events."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, replace
from enum import Enum, auto

from .karplus import NoiseType, StringConfig
from .params import ParamId, get_param_info
from .voices import DEFAULT_ATTACK_SECONDS, BodyFilter, RoomProcessor, VoiceManager

MAX_VOICES = 8


def _round_half_away(value: float) -> float:
    return math.copysign(math.floor(abs(value) + 0.5), value)


class EventType(Enum):
    NOTE_ON = auto()
    NOTE_OFF = auto()
    PARAM_CHANGE = auto()


@dataclass
class Event:
    type: EventType = EventType.NOTE_ON
    note_id: int = -1
    velocity: float = 1.0
    param: ParamId = ParamId.DECAY
    param_value: float = 0.0
    frequency: float = 440.0
    duration_seconds: float = 1.0
    # Absolute frame time stamp at the current sample rate.
    frame_offset: int = 0


class StringSynthEngine:
    """Polyphonic plucked-string engine rendering blocks of interleaved samples."""

    def __init__(self, config: StringConfig | None = None) -> None:
        self._config = replace(config) if config is not None else StringConfig()
        self._master_gain = 1.0
        self._amp_release_seconds = get_param_info(ParamId.AMP_RELEASE).default_value
        self._queue: list[Event] = []
        self._frame_cursor = 0
        self._next_note_id = 1
        self._lock = threading.Lock()

        self._voices = VoiceManager(
            MAX_VOICES,
            self._config.sample_rate,
            DEFAULT_ATTACK_SECONDS,
            self._amp_release_seconds,
        )
        self._voices.set_release_seconds(self._amp_release_seconds)
        self._body = BodyFilter()
        self._body.set_sample_rate(self._config.sample_rate)
        self._body.set_params(self._config.body_tone, self._config.body_size)
        self._room = RoomProcessor()
        self._room.set_sample_rate(self._config.sample_rate)
        self._room.set_amount(self._config.room_amount)

    # Configuration -------------------------------------------------------

    def set_config(self, config: StringConfig) -> None:
        """Adopt every setting of ``config``, each clamped to its range."""
        with self._lock:
            self._config.sample_rate = config.sample_rate
            self._config.seed = config.seed
            gain = self._master_gain
            for param_id, value in (
                (ParamId.DECAY, config.decay),
                (ParamId.BRIGHTNESS, config.brightness),
                (ParamId.DISPERSION_AMOUNT, config.dispersion_amount),
                (ParamId.EXCITATION_BRIGHTNESS, config.excitation_brightness),
                (ParamId.EXCITATION_VELOCITY, config.excitation_velocity),
                (ParamId.BODY_TONE, config.body_tone),
                (ParamId.BODY_SIZE, config.body_size),
                (ParamId.ROOM_AMOUNT, config.room_amount),
                (ParamId.PICK_POSITION, config.pick_position),
                (ParamId.ENABLE_LOWPASS, 1.0 if config.enable_lowpass else 0.0),
                (
                    ParamId.NOISE_TYPE,
                    1.0 if config.noise_type is NoiseType.BINARY else 0.0,
                ),
            ):
                gain = self._apply_param(param_id, value, self._config, gain)
            self._master_gain = gain
            self._propagate_sample_rate()

    def string_config(self) -> StringConfig:
        """Return a copy of the current string configuration."""
        with self._lock:
            return replace(self._config)

    def set_sample_rate(self, sample_rate: float) -> None:
        with self._lock:
            self._config.sample_rate = sample_rate
            self._propagate_sample_rate()

    @property
    def sample_rate(self) -> float:
        with self._lock:
            return self._config.sample_rate

    def set_param(self, param_id: ParamId, value: float) -> None:
        """Set a parameter immediately, clamped to its range."""
        with self._lock:
            self._master_gain = self._apply_param(
                param_id, value, self._config, self._master_gain
            )

    def get_param(self, param_id: ParamId) -> float:
        with self._lock:
            config = self._config
            values = {
                ParamId.DECAY: config.decay,
                ParamId.BRIGHTNESS: config.brightness,
                ParamId.DISPERSION_AMOUNT: config.dispersion_amount,
                ParamId.EXCITATION_BRIGHTNESS: config.excitation_brightness,
                ParamId.EXCITATION_VELOCITY: config.excitation_velocity,
                ParamId.BODY_TONE: config.body_tone,
                ParamId.BODY_SIZE: config.body_size,
                ParamId.ROOM_AMOUNT: config.room_amount,
                ParamId.PICK_POSITION: config.pick_position,
                ParamId.ENABLE_LOWPASS: 1.0 if config.enable_lowpass else 0.0,
                ParamId.NOISE_TYPE: 1.0 if config.noise_type is NoiseType.BINARY else 0.0,
                ParamId.MASTER_GAIN: self._master_gain,
                ParamId.AMP_RELEASE: self._amp_release_seconds,
            }
            return float(values.get(param_id, 0.0))

    # Events --------------------------------------------------------------

    def enqueue_event(self, event: Event) -> None:
        """Queue ``event`` to take effect at the current frame."""
        self.enqueue_event_at(event, self._frame_cursor)

    def enqueue_event_at(self, event: Event, frame_offset: int) -> None:
        """Queue a copy of ``event`` stamped with an absolute frame offset."""
        stamped = replace(event, frame_offset=frame_offset)
        with self._lock:
            self._queue.append(stamped)

    def note_on(
        self,
        note_id: int,
        frequency: float,
        velocity: float = 1.0,
        duration_seconds: float = 0.0,
    ) -> int | None:
        """Start a note now; a negative id gets a fresh one.

        With a positive duration a matching note-off is scheduled too.
        Returns the note id used, or None when the frequency is not positive.
        """
        if frequency <= 0.0:
            return None
        start_frame = self._frame_cursor
        with self._lock:
            current_rate = self._config.sample_rate
            if note_id < 0:
                note_id = self._next_note_id
                self._next_note_id += 1

        self.enqueue_event_at(
            Event(
                type=EventType.NOTE_ON,
                note_id=note_id,
                velocity=velocity,
                frequency=frequency,
            ),
            start_frame,
        )
        if duration_seconds > 0.0 and current_rate > 0.0:
            delta = int(max(0.0, _round_half_away(duration_seconds * current_rate)))
            self.enqueue_event_at(
                Event(type=EventType.NOTE_OFF, note_id=note_id), start_frame + delta
            )
        return note_id

    def note_off(self, note_id: int) -> None:
        if note_id < 0:
            return
        self.enqueue_event(Event(type=EventType.NOTE_OFF, note_id=note_id))

    def play(self, frequency: float, duration_seconds: float) -> int | None:
        """Start a full-velocity note with a fresh id for the given duration."""
        return self.note_on(-1, frequency, 1.0, duration_seconds)

    # Rendering -----------------------------------------------------------

    def process(self, frames: int, channels: int = 1) -> list[float]:
        """Render ``frames`` frames as interleaved samples over ``channels``."""
        if frames <= 0 or channels <= 0:
            return []
        output = [0.0] * (frames * channels)
        block_start = self._frame_cursor
        block_end = block_start + frames

        with self._lock:
            config = replace(self._config)
            master_gain = self._master_gain
            amp_release = self._amp_release_seconds
            pending, self._queue = self._queue, []

        self._voices.set_sample_rate(config.sample_rate)
        self._voices.set_release_seconds(amp_release)

        ready: list[Event] = []
        future: list[Event] = []
        for event in pending:
            if event.frame_offset <= block_start:
                event.frame_offset = block_start
                ready.append(event)
            elif event.frame_offset < block_end:
                ready.append(event)
            else:
                future.append(event)
        ready.sort(key=lambda item: item.frame_offset)

        index = 0
        for frame in range(frames):
            absolute = block_start + frame
            while index < len(ready) and ready[index].frame_offset <= absolute:
                master_gain, amp_release = self._handle_event(
                    ready[index], config, master_gain, amp_release
                )
                index += 1

            sample = self._body.process(self._voices.render_frame(master_gain))
            left, right = self._room.process(sample)
            base = frame * channels
            if channels >= 2:
                output[base] += left
                output[base + 1] += right
                for channel in range(2, channels):
                    output[base + channel] += sample
            else:
                output[base] += 0.5 * (left + right)

        self._frame_cursor += frames

        with self._lock:
            self._config = config
            self._master_gain = master_gain
            self._amp_release_seconds = amp_release
            if future:
                self._queue.extend(future)
                self._queue.sort(key=lambda item: item.frame_offset)
        return output

    # Introspection -------------------------------------------------------

    def active_voice_count(self) -> int:
        return len(self._voices)

    def queued_event_count(self) -> int:
        with self._lock:
            return len(self._queue)

    def rendered_frames(self) -> int:
        return self._frame_cursor

    def queued_event_frames(self) -> list[int]:
        with self._lock:
            return [event.frame_offset for event in self._queue]

    # Internals -----------------------------------------------------------

    def _propagate_sample_rate(self) -> None:
        rate = self._config.sample_rate
        self._voices.set_sample_rate(rate)
        self._body.set_sample_rate(rate)
        self._room.set_sample_rate(rate)

    def _handle_event(
        self,
        event: Event,
        config: StringConfig,
        master_gain: float,
        amp_release: float,
    ) -> tuple[float, float]:
        if event.type is EventType.NOTE_ON:
            self._voices.note_on(event.note_id, event.frequency, event.velocity, config)
        elif event.type is EventType.NOTE_OFF:
            self._voices.note_off(event.note_id)
        elif event.type is EventType.PARAM_CHANGE:
            master_gain = self._apply_param(
                event.param, event.param_value, config, master_gain
            )
            amp_release = self._amp_release_seconds
            self._voices.set_release_seconds(amp_release)
        return master_gain, amp_release

    def _apply_param(
        self,
        param_id: ParamId,
        value: float,
        config: StringConfig,
        master_gain: float,
    ) -> float:
        """Store a clamped parameter in ``config``; return the master gain."""
        clamped = get_param_info(param_id).clamp(value)
        if param_id is ParamId.DECAY:
            config.decay = clamped
        elif param_id is ParamId.BRIGHTNESS:
            config.brightness = clamped
        elif param_id is ParamId.DISPERSION_AMOUNT:
            config.dispersion_amount = clamped
        elif param_id is ParamId.EXCITATION_BRIGHTNESS:
            config.excitation_brightness = clamped
        elif param_id is ParamId.EXCITATION_VELOCITY:
            config.excitation_velocity = clamped
        elif param_id is ParamId.BODY_TONE:
            config.body_tone = clamped
            self._body.set_params(config.body_tone, config.body_size)
        elif param_id is ParamId.BODY_SIZE:
            config.body_size = clamped
            self._body.set_params(config.body_tone, config.body_size)
        elif param_id is ParamId.ROOM_AMOUNT:
            config.room_amount = clamped
            self._room.set_amount(config.room_amount)
        elif param_id is ParamId.PICK_POSITION:
            config.pick_position = clamped
        elif param_id is ParamId.ENABLE_LOWPASS:
            config.enable_lowpass = clamped >= 0.5
        elif param_id is ParamId.NOISE_TYPE:
            config.noise_type = NoiseType.BINARY if clamped >= 0.5 else NoiseType.WHITE
        elif param_id is ParamId.MASTER_GAIN:
            master_gain = clamped
        elif param_id is ParamId.AMP_RELEASE:
            self._amp_release_seconds = clamped
            self._voices.set_release_seconds(clamped)
        return master_gain