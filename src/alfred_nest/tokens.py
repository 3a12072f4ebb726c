"""
TokenStore — owns config.json and decides whether we hold a usable token.

There is no refresh token: once ``access_expiry`` passes, the user has to
authorize again.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import ValidationError

from alfred_nest.errors import NotAuthorized
from alfred_nest.models.documents import ZERO_TIME, Config
from alfred_nest.store import DocumentStore
from alfred_nest.temperature import Scale

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def token_valid(token: str, expiry: datetime, now: datetime) -> bool:
    """The authorization predicate: a non-empty token strictly before its expiry."""
    return token != "" and now < expiry


class TokenStore:
    def __init__(self, store: DocumentStore, clock: Clock = utc_now):
        self._store = store
        self._clock = clock
        self.config = self._load()

    def _load(self) -> Config:
        data = self._store.load()
        if data is not None:
            try:
                return Config.model_validate(data)
            except ValidationError as e:
                logger.warning("Replacing unreadable config with defaults: %s", e)
        else:
            logger.info("No config found, creating defaults")
        config = Config(preferred_scale=Scale.FAHRENHEIT)
        self._store.save(config.model_dump(mode="json", by_alias=True))
        return config

    def reload(self) -> Config:
        self.config = self._load()
        return self.config

    def persist(self) -> None:
        self._store.save(self.config.model_dump(mode="json", by_alias=True))

    def is_authorized(self, now: Optional[datetime] = None) -> bool:
        return token_valid(self.config.access_token, self.config.access_expiry, now or self._clock())

    def require_token(self) -> str:
        if not self.is_authorized():
            raise NotAuthorized()
        return self.config.access_token

    def save(self, token: str, expiry: datetime) -> None:
        self.config.access_token = token
        self.config.access_expiry = expiry
        self.persist()
        logger.info("Saved access token %s... (expires %s)", token[:6], expiry.isoformat())

    def clear(self) -> None:
        self.save("", ZERO_TIME)

    def select_device(self, device_id: str) -> None:
        self.config.selected_device_id = device_id
        self.persist()

    def set_scale(self, scale: Scale) -> None:
        self.config.preferred_scale = scale
        self.persist()

    @property
    def scale(self) -> Scale:
        """The scale used for display and input; Fahrenheit until one is chosen."""
        return self.config.preferred_scale or Scale.FAHRENHEIT
