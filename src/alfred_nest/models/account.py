"""
Account data models — the snapshot returned by ``GET /`` on the Nest API.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from alfred_nest.temperature import Scale, Temperature


class HvacMode(str, Enum):
    HEAT = "heat"
    COOL = "cool"
    RANGE = "heat-cool"
    OFF = "off"


class Presence(str, Enum):
    HOME = "home"
    AWAY = "away"
    AUTO_AWAY = "auto-away"


class Bound(str, Enum):
    """Which target field a temperature write goes to."""
    NONE = ""
    HIGH = "high"
    LOW = "low"


class Metadata(BaseModel):
    access_token: str = ""
    client_version: int = 0


class Thermostat(BaseModel):
    device_id: str
    locale: str = ""
    software_version: str = ""
    structure_id: str = ""
    name: str = ""
    name_long: str = ""
    last_connection: Optional[datetime] = None
    is_online: bool = False
    can_cool: bool = False
    can_heat: bool = False
    is_using_emergency_heat: bool = False
    has_fan: bool = False
    fan_timer_active: bool = False
    fan_timer_timeout: Optional[datetime] = None
    has_leaf: bool = False
    temperature_scale: Scale = Scale.FAHRENHEIT
    target_temperature_f: float = 0
    target_temperature_c: float = 0
    target_temperature_high_f: float = 0
    target_temperature_high_c: float = 0
    target_temperature_low_f: float = 0
    target_temperature_low_c: float = 0
    away_temperature_high_f: float = 0
    away_temperature_high_c: float = 0
    away_temperature_low_f: float = 0
    away_temperature_low_c: float = 0
    hvac_mode: HvacMode = HvacMode.OFF
    ambient_temperature_f: float = 0
    ambient_temperature_c: float = 0
    humidity: float = 0

    @property
    def scale_name(self) -> str:
        return self.temperature_scale.label

    def _pick(self, field: str, scale: Optional[Scale]) -> Temperature:
        # The API reports every temperature in both scales; never convert here.
        scale = scale or self.temperature_scale
        return Temperature(value=getattr(self, f"{field}_{scale.value.lower()}"), scale=scale)

    def target_temperature(self, scale: Optional[Scale] = None) -> Temperature:
        return self._pick("target_temperature", scale)

    def target_temperature_high(self, scale: Optional[Scale] = None) -> Temperature:
        return self._pick("target_temperature_high", scale)

    def target_temperature_low(self, scale: Optional[Scale] = None) -> Temperature:
        return self._pick("target_temperature_low", scale)

    def away_temperature_high(self, scale: Optional[Scale] = None) -> Temperature:
        return self._pick("away_temperature_high", scale)

    def away_temperature_low(self, scale: Optional[Scale] = None) -> Temperature:
        return self._pick("away_temperature_low", scale)

    def ambient_temperature(self, scale: Optional[Scale] = None) -> Temperature:
        return self._pick("ambient_temperature", scale)


class Eta(BaseModel):
    trip_id: str = ""
    estimated_arrival_window_begin: Optional[datetime] = None
    estimated_arrival_window_end: Optional[datetime] = None


class Structure(BaseModel):
    structure_id: str
    thermostats: list[str] = []
    away: Presence = Presence.HOME
    name: str = ""
    peak_period_start_time: Optional[datetime] = None
    peak_period_end_time: Optional[datetime] = None
    time_zone: str = ""
    eta: Optional[Eta] = None


class Devices(BaseModel):
    thermostats: dict[str, Thermostat] = Field(default_factory=dict)


class AccountData(BaseModel):
    metadata: Metadata = Field(default_factory=Metadata)
    devices: Devices = Field(default_factory=Devices)
    structures: dict[str, Structure] = Field(default_factory=dict)
