"""Small single-sample filters used by the string model."""

from __future__ import annotations

from abc import ABC, abstractmethod


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


class Filter(ABC):
    """A stateful filter that processes one sample at a time."""

    @abstractmethod
    def process(self, value: float) -> float:
        """Filter one sample and return the result."""

    def reset(self) -> None:
        """Clear the filter's internal state."""


class OnePoleLowPass(Filter):
    """One-pole low-pass: ``y = alpha * x + (1 - alpha) * y_prev``."""

    def __init__(self, alpha: float = 0.5) -> None:
        self._alpha = _clamp01(alpha)
        self._state = 0.0

    @property
    def alpha(self) -> float:
        return self._alpha

    @alpha.setter
    def alpha(self, value: float) -> None:
        self._alpha = _clamp01(value)

    def process(self, value: float) -> float:
        self._state = self._alpha * value + (1.0 - self._alpha) * self._state
        return self._state

    def reset(self) -> None:
        self._state = 0.0


class FirstOrderAllPass(Filter):
    """First-order all-pass section with a coefficient limited to [-1, 1]."""

    def __init__(self, coefficient: float = 0.0) -> None:
        self._coefficient = 0.0
        self._z1 = 0.0
        self.coefficient = coefficient

    @property
    def coefficient(self) -> float:
        return self._coefficient

    @coefficient.setter
    def coefficient(self, value: float) -> None:
        clamped = _clamp01(abs(value))
        self._coefficient = -clamped if value < 0.0 else clamped

    def process(self, value: float) -> float:
        y = -self._coefficient * value + self._z1
        self._z1 = value + self._coefficient * y
        return y

    def reset(self) -> None:
        self._z1 = 0.0


class FilterChain:
    """Filters applied one after another, in the order they were added."""

    def __init__(self) -> None:
        self._filters: list[Filter] = []

    def add(self, filter: Filter) -> None:
        self._filters.append(filter)

    def clear(self) -> None:
        self._filters.clear()

    def reset(self) -> None:
        for item in self._filters:
            item.reset()

    def process(self, value: float) -> float:
        for item in self._filters:
            value = item.process(value)
        return value

    def __len__(self) -> int:
        return len(self._filters)