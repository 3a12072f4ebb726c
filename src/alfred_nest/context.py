"""
Per-invocation context: settings from the environment plus the components
built from them. One Context is created by the CLI and handed around; nothing
lives at module level.
"""

import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel

from alfred_nest.auth import CALLBACK_PORT, DEFAULT_AUTHORIZE_URL, DEFAULT_TOKEN_URL, AuthCallbackServer
from alfred_nest.cache import CacheManager, SyncLock
from alfred_nest.nest import NestSession
from alfred_nest.store import DocumentStore, JsonFileStore
from alfred_nest.tokens import Clock, TokenStore, utc_now
from alfred_nest.transport.http import DEFAULT_API_URL, DEFAULT_TIMEOUT

DEFAULT_HOME = Path.home() / ".alfred-nest"


class Settings(BaseModel):
    client_id: str = ""
    client_secret: str = ""
    data_dir: Path = DEFAULT_HOME
    cache_dir: Path = DEFAULT_HOME
    api_url: str = DEFAULT_API_URL
    authorize_url: str = DEFAULT_AUTHORIZE_URL
    token_url: str = DEFAULT_TOKEN_URL
    callback_port: int = CALLBACK_PORT
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read settings from Alfred's workflow variables and NEST_* overrides."""
        env = os.environ if env is None else env
        values: dict[str, object] = {
            "client_id": env.get("NEST_CLIENT_ID", ""),
            "client_secret": env.get("NEST_CLIENT_SECRET", ""),
        }
        optional = {
            "data_dir": "alfred_workflow_data",
            "cache_dir": "alfred_workflow_cache",
            "api_url": "NEST_API_URL",
            "authorize_url": "NEST_AUTH_URL",
            "token_url": "NEST_TOKEN_URL",
            "callback_port": "NEST_CALLBACK_PORT",
        }
        for field, var in optional.items():
            if env.get(var):
                values[field] = env[var]
        return cls.model_validate(values)

    @property
    def config_file(self) -> Path:
        return self.data_dir / "config.json"

    @property
    def cache_file(self) -> Path:
        return self.cache_dir / "cache.json"

    @property
    def lock_file(self) -> Path:
        return self.cache_dir / "sync.lock"


class Context:
    def __init__(
        self,
        settings: Settings,
        config_store: Optional[DocumentStore] = None,
        cache_store: Optional[DocumentStore] = None,
        clock: Clock = utc_now,
    ):
        self.settings = settings
        self.clock = clock
        self.tokens = TokenStore(config_store or JsonFileStore(settings.config_file), clock)
        self.cache = CacheManager(
            cache_store or JsonFileStore(settings.cache_file),
            self.tokens,
            session_factory=self.open_session,
            lock=SyncLock(settings.lock_file),
            clock=clock,
        )

    def open_session(self, token: Optional[str] = None) -> NestSession:
        return NestSession(
            token or self.tokens.require_token(),
            base_url=self.settings.api_url,
            timeout=self.settings.timeout,
        )

    def callback_server(self, expected_state: Optional[str] = None) -> AuthCallbackServer:
        return AuthCallbackServer(
            self.tokens,
            client_id=self.settings.client_id,
            client_secret=self.settings.client_secret,
            expected_state=expected_state,
            port=self.settings.callback_port,
            token_url=self.settings.token_url,
            timeout=self.settings.timeout,
            clock=self.clock,
        )
