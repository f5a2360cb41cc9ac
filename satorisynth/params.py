"""Descriptions of the synthesis parameters: ranges, defaults and lookup."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class ParamId(Enum):
    DECAY = auto()
    BRIGHTNESS = auto()
    DISPERSION_AMOUNT = auto()
    EXCITATION_BRIGHTNESS = auto()
    EXCITATION_VELOCITY = auto()
    BODY_TONE = auto()
    BODY_SIZE = auto()
    ROOM_AMOUNT = auto()
    PICK_POSITION = auto()
    ENABLE_LOWPASS = auto()
    NOISE_TYPE = auto()
    MASTER_GAIN = auto()
    AMP_RELEASE = auto()


class ParamType(Enum):
    FLOAT = auto()
    BOOL = auto()
    ENUM = auto()


@dataclass(frozen=True)
class ParamInfo:
    id: ParamId
    name: str
    type: ParamType
    min_value: float
    max_value: float
    default_value: float

    def clamp(self, value: float) -> float:
        """Limit ``value`` to this parameter's range."""
        return max(self.min_value, min(self.max_value, value))


_PARAMS: tuple[ParamInfo, ...] = (
    ParamInfo(ParamId.DECAY, "decay", ParamType.FLOAT, 0.90, 0.999, 0.996),
    ParamInfo(ParamId.BRIGHTNESS, "brightness", ParamType.FLOAT, 0.0, 1.0, 0.5),
    ParamInfo(ParamId.DISPERSION_AMOUNT, "dispersionAmount", ParamType.FLOAT, 0.0, 1.0, 0.12),
    ParamInfo(
        ParamId.EXCITATION_BRIGHTNESS, "excitationBrightness", ParamType.FLOAT, 0.0, 1.0, 0.6
    ),
    ParamInfo(
        ParamId.EXCITATION_VELOCITY, "excitationVelocity", ParamType.FLOAT, 0.0, 1.0, 0.5
    ),
    ParamInfo(ParamId.BODY_TONE, "bodyTone", ParamType.FLOAT, 0.0, 1.0, 0.5),
    ParamInfo(ParamId.BODY_SIZE, "bodySize", ParamType.FLOAT, 0.0, 1.0, 0.5),
    ParamInfo(ParamId.ROOM_AMOUNT, "roomAmount", ParamType.FLOAT, 0.0, 1.0, 0.0),
    ParamInfo(ParamId.PICK_POSITION, "pickPosition", ParamType.FLOAT, 0.05, 0.95, 0.5),
    ParamInfo(ParamId.ENABLE_LOWPASS, "enableLowpass", ParamType.BOOL, 0.0, 1.0, 1.0),
    ParamInfo(ParamId.NOISE_TYPE, "noiseType", ParamType.ENUM, 0.0, 1.0, 0.0),
    ParamInfo(ParamId.MASTER_GAIN, "masterGain", ParamType.FLOAT, 0.0, 2.0, 1.0),
    ParamInfo(ParamId.AMP_RELEASE, "ampRelease", ParamType.FLOAT, 0.01, 5.0, 0.35),
)

_BY_ID = {info.id: info for info in _PARAMS}
_BY_NAME = {info.name.lower(): info for info in _PARAMS}


def param_info_list() -> tuple[ParamInfo, ...]:
    """Return every parameter description in declaration order."""
    return _PARAMS


def get_param_info(param_id: ParamId) -> ParamInfo:
    """Return the description of ``param_id``; raise KeyError if unknown."""
    return _BY_ID[param_id]


def find_param_by_name(name: str) -> ParamInfo | None:
    """Look a parameter up by name, ignoring case; None if there is none."""
    return _BY_NAME.get(name.lower())