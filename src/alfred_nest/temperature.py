"""
Scale-tagged temperatures.

A Temperature always carries its own scale. Values in different scales are
never compared implicitly; call ``to()`` first. Rounding only happens when a
value is rendered with ``str()``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Scale(str, Enum):
    CELSIUS = "C"
    FAHRENHEIT = "F"

    @property
    def label(self) -> str:
        return "Celsius" if self is Scale.CELSIUS else "Fahrenheit"

    @classmethod
    def parse(cls, name: str) -> "Scale":
        """Accept "C", "F", "celsius" or "fahrenheit" in any case."""
        lname = name.strip().lower()
        if lname in ("c", "celsius"):
            return cls.CELSIUS
        if lname in ("f", "fahrenheit"):
            return cls.FAHRENHEIT
        raise ValueError(f"Invalid temperature scale '{name}'")


def c_to_f(value: float) -> float:
    return value * 9 / 5 + 32


def f_to_c(value: float) -> float:
    return (value - 32) * 5 / 9


class Temperature(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: float
    scale: Scale

    @classmethod
    def celsius(cls, value: float) -> "Temperature":
        return cls(value=value, scale=Scale.CELSIUS)

    @classmethod
    def fahrenheit(cls, value: float) -> "Temperature":
        return cls(value=value, scale=Scale.FAHRENHEIT)

    def to(self, scale: Scale) -> "Temperature":
        if scale == self.scale:
            return self
        if scale == Scale.FAHRENHEIT:
            return Temperature(value=c_to_f(self.value), scale=scale)
        return Temperature(value=f_to_c(self.value), scale=scale)

    def _checked(self, other: "Temperature") -> float:
        if not isinstance(other, Temperature):
            raise TypeError(f"Cannot compare Temperature with {type(other).__name__}")
        if other.scale != self.scale:
            raise ValueError(
                f"Cannot compare {self.scale.label} with {other.scale.label} without conversion"
            )
        return other.value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Temperature):
            return NotImplemented
        return self.value == self._checked(other)

    def __hash__(self) -> int:
        return hash((self.value, self.scale))

    def __lt__(self, other: "Temperature") -> bool:
        return self.value < self._checked(other)

    def __le__(self, other: "Temperature") -> bool:
        return self.value <= self._checked(other)

    def __gt__(self, other: "Temperature") -> bool:
        return self.value > self._checked(other)

    def __ge__(self, other: "Temperature") -> bool:
        return self.value >= self._checked(other)

    def __str__(self) -> str:
        shown = round(self.value, 1)
        if shown == int(shown):
            return f"{int(shown)}°{self.scale.value}"
        return f"{shown}°{self.scale.value}"
