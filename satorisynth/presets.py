"""Loading and saving synthesiser presets as small JSON-like documents."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from .engine import StringSynthEngine
from .karplus import NoiseType, StringConfig
from .params import ParamId, get_param_info

_NUMBER = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)

_LEADING_FLOATS = (
    ("decay", ParamId.DECAY),
    ("brightness", ParamId.BRIGHTNESS),
    ("excitationBrightness", ParamId.EXCITATION_BRIGHTNESS),
    ("excitationVelocity", ParamId.EXCITATION_VELOCITY),
    ("bodyTone", ParamId.BODY_TONE),
    ("bodySize", ParamId.BODY_SIZE),
    ("roomAmount", ParamId.ROOM_AMOUNT),
    ("dispersionAmount", ParamId.DISPERSION_AMOUNT),
    ("pickPosition", ParamId.PICK_POSITION),
)

_TRAILING_FLOATS = (
    ("masterGain", ParamId.MASTER_GAIN),
    ("ampRelease", ParamId.AMP_RELEASE),
)


class PresetError(Exception):
    """Raised when a preset cannot be read, parsed or written."""


@dataclass
class Preset:
    config: StringConfig = field(default_factory=StringConfig)
    master_gain: float = 1.0
    amp_release: float = get_param_info(ParamId.AMP_RELEASE).default_value


def _leading_float(raw: str) -> float:
    match = _NUMBER.match(raw)
    if match is None:
        raise ValueError(f"not a number: {raw!r}")
    return float(match.group(1))


def _leading_bool(raw: str) -> bool:
    lower = raw.lower()
    if lower.startswith("true"):
        return True
    if lower.startswith("false"):
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def extract_value(text: str, key: str) -> str | None:
    """Return the raw text of ``"key": value`` in ``text``, or None if absent.

    Quoted values come back without their quotes; other values run up to the
    next comma, closing brace or line end.
    """
    needle = f'"{key}"'
    key_pos = text.find(needle)
    if key_pos < 0:
        return None
    colon = text.find(":", key_pos + len(needle))
    if colon < 0:
        return None
    start = colon + 1
    while start < len(text) and text[start] in " \t\r\n":
        start += 1
    if start >= len(text):
        return None
    if text[start] == '"':
        end = text.find('"', start + 1)
        if end < 0:
            return None
        return text[start + 1 : end]
    end = start
    while end < len(text) and text[end] not in ",}\r\n":
        end += 1
    return text[start:end]


class PresetManager:
    """Reads and writes presets kept in one directory."""

    def __init__(self, preset_dir: str | os.PathLike[str]) -> None:
        self._root = Path(preset_dir)

    @property
    def root(self) -> Path:
        return self._root

    def default_preset_path(self) -> Path:
        return self._root / "default.json"

    def user_preset_path(self) -> Path:
        return self._root / "user.json"

    def load(
        self, path: str | os.PathLike[str], base: Preset | None = None
    ) -> Preset:
        """Read the preset at ``path``; settings it lacks come from ``base``."""
        try:
            with open(path, encoding="utf-8") as stream:
                content = stream.read()
        except OSError as exc:
            raise PresetError(f"cannot open preset file: {os.fspath(path)}") from exc
        return self.parse(content, base)

    def save(self, path: str | os.PathLike[str], preset: Preset) -> None:
        """Write ``preset`` to ``path``, creating missing directories."""
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            pass
        try:
            stream = open(target, "wb")
        except OSError as exc:
            raise PresetError(f"cannot write preset file: {target}") from exc
        try:
            with stream:
                stream.write(self.serialize(preset).encode("utf-8"))
        except OSError as exc:
            raise PresetError(f"failed to write preset content: {target}") from exc

    def parse(self, content: str, base: Preset | None = None) -> Preset:
        """Apply the settings found in ``content`` on top of ``base``."""
        base = base if base is not None else Preset()
        params = StringSynthEngine(base.config)
        params.set_param(ParamId.MASTER_GAIN, base.master_gain)
        params.set_param(ParamId.AMP_RELEASE, base.amp_release)

        self._apply_floats(content, params, _LEADING_FLOATS)

        lowpass = extract_value(content, "enableLowpass")
        if lowpass is not None:
            try:
                enabled = _leading_bool(lowpass)
            except ValueError as exc:
                raise PresetError("failed to parse enableLowpass") from exc
            params.set_param(ParamId.ENABLE_LOWPASS, 1.0 if enabled else 0.0)

        noise = extract_value(content, "noiseType")
        if noise is not None:
            params.set_param(ParamId.NOISE_TYPE, 1.0 if noise.lower() == "binary" else 0.0)

        self._apply_floats(content, params, _TRAILING_FLOATS)

        return Preset(
            config=params.string_config(),
            master_gain=params.get_param(ParamId.MASTER_GAIN),
            amp_release=params.get_param(ParamId.AMP_RELEASE),
        )

    def serialize(self, preset: Preset) -> str:
        """Render ``preset`` as the text that ``parse`` reads back."""
        config = preset.config
        noise = "binary" if config.noise_type is NoiseType.BINARY else "white"
        lowpass = "true" if config.enable_lowpass else "false"
        lines = [
            f'  "decay": {config.decay:g}',
            f'  "brightness": {config.brightness:g}',
            f'  "excitationBrightness": {config.excitation_brightness:g}',
            f'  "excitationVelocity": {config.excitation_velocity:g}',
            f'  "dispersionAmount": {config.dispersion_amount:g}',
            f'  "bodyTone": {config.body_tone:g}',
            f'  "bodySize": {config.body_size:g}',
            f'  "roomAmount": {config.room_amount:g}',
            f'  "pickPosition": {config.pick_position:g}',
            f'  "enableLowpass": {lowpass}',
            f'  "noiseType": "{noise}"',
            f'  "masterGain": {preset.master_gain:g}',
            f'  "ampRelease": {preset.amp_release:g}',
        ]
        return "{\n" + ",\n".join(lines) + "\n}\n"

    @staticmethod
    def _apply_floats(content, params, entries) -> None:
        for key, param_id in entries:
            raw = extract_value(content, key)
            if raw is None:
                continue
            try:
                value = _leading_float(raw)
            except ValueError as exc:
                raise PresetError(f"failed to parse {key}") from exc
            params.set_param(param_id, value)