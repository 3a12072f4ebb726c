"""
Typed Nest operations on top of the raw HTTP client.

A session holds exactly one access token. It keeps no other state between
calls; callers are responsible for invalidating the cache after a write.
"""

import json
import logging
from typing import Any, Type, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from alfred_nest.errors import DecodeError
from alfred_nest.models.account import AccountData, Bound, HvacMode, Presence, Structure, Thermostat
from alfred_nest.temperature import Scale, Temperature
from alfred_nest.transport.http import DEFAULT_API_URL, DEFAULT_TIMEOUT, HttpClient

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_THERMOSTATS = TypeAdapter(dict[str, Thermostat])


def choose_bound(thermostat: Thermostat, temperature: Temperature) -> Bound:
    """Pick the target field a new temperature should be written to.

    In heat-cool mode a value below the ambient temperature lowers the low
    end of the range, anything else raises the high end.
    """
    if thermostat.hvac_mode != HvacMode.RANGE:
        return Bound.NONE
    if temperature < thermostat.ambient_temperature(temperature.scale):
        return Bound.LOW
    return Bound.HIGH


def target_path(device_id: str, scale: Scale, bound: Bound = Bound.NONE) -> str:
    path = f"/devices/thermostats/{device_id}/target_temperature_"
    if bound != Bound.NONE:
        path += f"{bound.value}_"
    return path + scale.value.lower()


class NestSession:
    def __init__(self, token: str, base_url: str = DEFAULT_API_URL, timeout: float = DEFAULT_TIMEOUT):
        self.http = HttpClient(token, base_url=base_url, timeout=timeout)

    def __enter__(self) -> "NestSession":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self.http.close()

    def get(self, path: str) -> str:
        return self.http.get(path)

    def put(self, path: str, body: Any) -> str:
        return self.http.put(path, json.dumps(body))

    def patch(self, path: str, body: Any) -> str:
        return self.http.patch(path, json.dumps(body))

    @staticmethod
    def _decode(content: str, model: Type[M]) -> M:
        try:
            return model.model_validate_json(content)
        except ValidationError as e:
            raise DecodeError(f"Malformed {model.__name__} from Nest: {e}") from e

    @staticmethod
    def _decode_value(content: str) -> Any:
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise DecodeError(f"Malformed response from Nest: {content[:100]!r}") from e

    def get_all_account_data(self) -> AccountData:
        return self._decode(self.get("/"), AccountData)

    def get_thermostats(self) -> list[Thermostat]:
        content = self.get("/devices/thermostats")
        try:
            return list(_THERMOSTATS.validate_json(content).values())
        except ValidationError as e:
            raise DecodeError(f"Malformed thermostat list from Nest: {e}") from e

    def is_away(self, structure_id: str) -> bool:
        structure = self._decode(self.get(f"/structures/{structure_id}"), Structure)
        return structure.away != Presence.HOME

    def set_target_temperature(
        self, device_id: str, temperature: Temperature, bound: Bound = Bound.NONE,
    ) -> Temperature:
        """Write a target temperature and return the value Nest accepted."""
        path = target_path(device_id, temperature.scale, bound)
        logger.info("Setting %s to %s", path, temperature.value)
        accepted = self._decode_value(self.put(path, temperature.value))
        try:
            return Temperature(value=float(accepted), scale=temperature.scale)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Unexpected temperature from Nest: {accepted!r}") from e

    def set_presence(self, structure_id: str, presence: Presence) -> None:
        resp = self.put(f"/structures/{structure_id}/away", presence.value)
        logger.debug("got response: %s", resp)

    def set_hvac_mode(self, device_id: str, mode: HvacMode) -> None:
        resp = self.put(f"/devices/thermostats/{device_id}/hvac_mode", mode.value)
        logger.debug("got response: %s", resp)

    def set_temperature_scale(self, device_id: str, scale: Scale) -> None:
        resp = self.put(f"/devices/thermostats/{device_id}/temperature_scale", scale.value)
        logger.debug("got response: %s", resp)
