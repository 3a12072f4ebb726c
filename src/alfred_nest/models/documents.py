"""
The two files persisted between runs: config.json and cache.json.

The JSON keys are the ones earlier releases of the workflow wrote, so files
already on disk keep loading.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from alfred_nest.models.account import AccountData
from alfred_nest.temperature import Scale

# Zero time: "never". An expiry at zero time is expired; a sync at zero time
# forces the next refresh.
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


def _aware(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Config(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    selected_device_id: str = Field("", alias="NestId")
    access_token: str = Field("", alias="AccessToken")
    access_expiry: datetime = Field(ZERO_TIME, alias="AccessExpiry")
    preferred_scale: Optional[Scale] = Field(None, alias="Scale")

    @field_validator("preferred_scale", mode="before")
    @classmethod
    def _empty_scale(cls, v: Any) -> Any:
        return None if v == "" else v

    @field_validator("access_expiry", mode="after")
    @classmethod
    def _expiry_aware(cls, v: datetime) -> datetime:
        return _aware(v)


class Cache(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    last_sync_time: datetime = Field(ZERO_TIME, alias="Time")
    account: AccountData = Field(default_factory=AccountData, alias="AllData")

    @field_validator("last_sync_time", mode="after")
    @classmethod
    def _sync_aware(cls, v: datetime) -> datetime:
        return _aware(v)
