"""
CacheManager — owns cache.json and decides when it is trusted.

Reads go through ``ensure_fresh()``, which only hits the network when the
snapshot is older than the threshold. Writes are made directly on a
NestSession and followed by ``invalidate()``, so the next read re-syncs
instead of showing a value the user just overwrote.

Only one process may refresh at a time; ``SyncLock`` is an exclusive
``flock`` on a lock file next to the cache, released by the OS if the holder
dies.
"""

import fcntl
import logging
import time
from contextlib import contextmanager, nullcontext
from datetime import timedelta
from pathlib import Path
from typing import Callable, ContextManager, Iterator, Optional

from pydantic import ValidationError

from alfred_nest.errors import DeviceNotFound, SyncInProgress
from alfred_nest.models.account import Structure, Thermostat
from alfred_nest.models.documents import ZERO_TIME, Cache
from alfred_nest.nest import NestSession
from alfred_nest.store import DocumentStore
from alfred_nest.tokens import Clock, TokenStore, utc_now

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = timedelta(minutes=5)


class SyncLock:
    def __init__(self, path: Path, timeout: float = 0.0):
        self.path = Path(path)
        self.timeout = timeout

    @contextmanager
    def acquire(self) -> Iterator[None]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a+") as lock_file:
            deadline = time.monotonic() + self.timeout
            while True:
                try:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                    break
                except BlockingIOError:
                    if time.monotonic() >= deadline:
                        raise SyncInProgress()
                    time.sleep(0.05)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)


SessionFactory = Callable[[str], NestSession]


class CacheManager:
    def __init__(
        self,
        store: DocumentStore,
        tokens: TokenStore,
        session_factory: SessionFactory = NestSession,
        lock: Optional[SyncLock] = None,
        clock: Clock = utc_now,
    ):
        self._store = store
        self._tokens = tokens
        self._session_factory = session_factory
        self._lock = lock
        self._clock = clock
        self.cache = self._load()

    def _load(self) -> Cache:
        data = self._store.load()
        if data is None:
            return Cache()
        try:
            return Cache.model_validate(data)
        except ValidationError as e:
            logger.warning("Discarding unreadable cache: %s", e)
            return Cache()

    def _locked(self) -> ContextManager[None]:
        return self._lock.acquire() if self._lock else nullcontext()

    def _persist(self, cache: Cache) -> None:
        self._store.save(cache.model_dump(mode="json", by_alias=True))

    def is_stale(self, max_age: timedelta = DEFAULT_MAX_AGE) -> bool:
        return self._clock() - self.cache.last_sync_time > max_age

    def ensure_fresh(self, max_age: timedelta = DEFAULT_MAX_AGE) -> bool:
        """Refresh if the snapshot is older than ``max_age``. Returns True if it refreshed."""
        if not self.is_stale(max_age):
            return False
        logger.info("Refreshing cache...")
        self.refresh()
        return True

    def refresh(self) -> None:
        token = self._tokens.require_token()
        with self._locked():
            with self._session_factory(token) as session:
                account = session.get_all_account_data()
            # Persist before swapping in memory so a failed write changes nothing.
            fresh = Cache(last_sync_time=self._clock(), account=account)
            self._persist(fresh)
            self.cache = fresh
        self._apply_defaults()

    def invalidate(self) -> None:
        stale = self.cache.model_copy(update={"last_sync_time": ZERO_TIME})
        self._persist(stale)
        self.cache = stale

    def _apply_defaults(self) -> None:
        config = self._tokens.config
        thermostats = self.cache.account.devices.thermostats
        updated = False

        if not config.selected_device_id and thermostats:
            # No default yet; take the first one Nest lists.
            config.selected_device_id = next(iter(thermostats))
            logger.info("Selected default thermostat %s", config.selected_device_id)
            updated = True

        if config.preferred_scale is None:
            thermostat = thermostats.get(config.selected_device_id)
            if thermostat is not None:
                config.preferred_scale = thermostat.temperature_scale
                updated = True

        if updated:
            self._tokens.persist()

    def thermostat(self, device_id: Optional[str] = None) -> Thermostat:
        device_id = device_id or self._tokens.config.selected_device_id
        if not device_id:
            raise DeviceNotFound("No default Nest selected. Run `nst config nest NAME`.")
        try:
            return self.cache.account.devices.thermostats[device_id]
        except KeyError:
            raise DeviceNotFound(f"Unknown thermostat '{device_id}'") from None

    def thermostat_by_name(self, name: str) -> Thermostat:
        for thermostat in self.cache.account.devices.thermostats.values():
            if thermostat.name == name or thermostat.device_id == name:
                return thermostat
        raise DeviceNotFound(f"Unknown thermostat '{name}'")

    def structure_for(self, thermostat: Thermostat) -> Optional[Structure]:
        return self.cache.account.structures.get(thermostat.structure_id)
