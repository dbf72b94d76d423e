from __future__ import annotations
from dataclasses import dataclass, fields, replace
from typing import Optional


@dataclass(frozen=True)
class ClimateReading:
    temperature: float  # degC
    humidity: float     # %RH


@dataclass(frozen=True)
class GasReading:
    co2eq: int  # ppm
    tvoc: int   # ppb


@dataclass
class Measurements:
    """Latest value per quantity. None means no reading this cycle."""

    temperature: Optional[float] = None
    humidity: Optional[float] = None
    illuminance: Optional[float] = None
    co2eq: Optional[int] = None
    tvoc: Optional[int] = None

    def set_climate(self, r: ClimateReading) -> None:
        self.temperature = r.temperature
        self.humidity = r.humidity

    def set_gas(self, r: GasReading) -> None:
        self.co2eq = r.co2eq
        self.tvoc = r.tvoc

    def clear(self) -> None:
        for f in fields(self):
            setattr(self, f.name, None)

    def copy(self) -> Measurements:
        return replace(self)

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))
