"""
alfred-nest — read and control a Nest thermostat from Alfred.

OAuth authorization, a cached account snapshot, and typed API calls against
the Nest cloud API.
"""

from alfred_nest.cache import CacheManager, SyncLock
from alfred_nest.context import Context, Settings
from alfred_nest.errors import (
    ApiError,
    AuthorizationInProgress,
    DecodeError,
    DeviceNotFound,
    NestError,
    NetworkError,
    NotAuthorized,
    PersistenceError,
    SyncInProgress,
    TooManyRedirects,
)
from alfred_nest.nest import NestSession
from alfred_nest.temperature import Scale, Temperature
from alfred_nest.tokens import TokenStore

__version__ = "0.1.0"
__all__ = [
    "CacheManager",
    "SyncLock",
    "Context",
    "Settings",
    "NestSession",
    "TokenStore",
    "Scale",
    "Temperature",
    "NestError",
    "NotAuthorized",
    "NetworkError",
    "ApiError",
    "TooManyRedirects",
    "DecodeError",
    "PersistenceError",
    "AuthorizationInProgress",
    "SyncInProgress",
    "DeviceNotFound",
]
