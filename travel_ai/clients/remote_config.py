import asyncio
import logging
import os
import time
import uuid
from typing import Callable, Dict, Optional, Protocol

import httpx

from travel_ai.config import (
    GEMINI_API_KEY_ENV,
    MIN_FETCH_INTERVAL_S,
    REMOTE_CONFIG_API_KEY,
    REMOTE_CONFIG_APP_ID,
    REMOTE_CONFIG_BASE,
    REMOTE_CONFIG_KEY_NAME,
    REMOTE_CONFIG_PROJECT,
)
from travel_ai.errors import ConfigFetchFailedError, EmptyKeyError

logger = logging.getLogger(__name__)


class ConfigProvider(Protocol):
    async def fetch_credential(self) -> str:
        """Return the generative API key or raise a ConfigError."""
        ...


def _credential_from(entries: Dict[str, str], key_name: str) -> str:
    value = entries.get(key_name)
    if not value:
        raise EmptyKeyError()
    return value


class RemoteConfigProvider:
    """
    Fetches the API key from Firebase Remote Config (REST client fetch).

    Fetches are throttled: within ``min_fetch_interval`` seconds of the last
    successful fetch the cached entries are used and no request is sent.
    A single fetch is in flight at a time.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        project: str,
        app_id: str,
        api_key: str,
        base_url: str = REMOTE_CONFIG_BASE,
        key_name: str = REMOTE_CONFIG_KEY_NAME,
        min_fetch_interval: float = MIN_FETCH_INTERVAL_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._http = http_client
        self._project = project
        self._app_id = app_id
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._key_name = key_name
        self._min_fetch_interval = min_fetch_interval
        self._clock = clock
        self._app_instance_id = uuid.uuid4().hex
        self._entries: Dict[str, str] = {}
        self._last_fetch: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def fetch_url(self) -> str:
        return f"{self._base_url}/v1/projects/{self._project}/namespaces/firebase:fetch"

    async def fetch_credential(self) -> str:
        async with self._lock:
            now = self._clock()
            if self._last_fetch is not None and now - self._last_fetch < self._min_fetch_interval:
                logger.info(
                    "Using cached remote config (%.1fs since last fetch, minimum interval %.0fs)",
                    now - self._last_fetch, self._min_fetch_interval,
                )
            else:
                await self._fetch_and_activate()
                self._last_fetch = now
            return _credential_from(self._entries, self._key_name)

    async def _fetch_and_activate(self) -> None:
        logger.info("Fetching remote config for project %s", self._project)
        try:
            r = await self._http.post(
                self.fetch_url,
                params={"key": self._api_key},
                json={"appId": self._app_id, "appInstanceId": self._app_instance_id},
            )
        except httpx.HTTPError as e:
            raise ConfigFetchFailedError(f"Fetch failed ({type(e).__name__}).") from e

        if not r.is_success:
            logger.warning("Remote config fetch returned %d", r.status_code)
            raise ConfigFetchFailedError(f"Fetch failed (HTTP {r.status_code}).")

        try:
            data = r.json()
        except ValueError:
            raise ConfigFetchFailedError("Fetch failed (response is not JSON).") from None

        state = data.get("state") if isinstance(data, dict) else None
        if state == "UPDATE":
            self._entries = dict(data.get("entries") or {})
            logger.info("Remote config activated (%d entries)", len(self._entries))
        elif state == "NO_CHANGE":
            logger.info("Remote config unchanged, using previously fetched entries")
        else:
            logger.warning("Remote config fetch returned state %r", state)
            raise ConfigFetchFailedError("Fetch failed (returned status is not right).")


class EnvConfigProvider:
    """Reads the API key from the environment, for local runs without Remote Config."""

    def __init__(self, env_var: str = GEMINI_API_KEY_ENV):
        self._env_var = env_var

    async def fetch_credential(self) -> str:
        return _credential_from(dict(os.environ), self._env_var)


def build_config_provider(http_client: httpx.AsyncClient) -> ConfigProvider:
    if REMOTE_CONFIG_PROJECT:
        logger.info("Using Firebase Remote Config for the API key")
        return RemoteConfigProvider(
            http_client,
            project=REMOTE_CONFIG_PROJECT,
            app_id=REMOTE_CONFIG_APP_ID,
            api_key=REMOTE_CONFIG_API_KEY,
        )
    logger.info("REMOTE_CONFIG_PROJECT not set, reading the API key from $%s", GEMINI_API_KEY_ENV)
    return EnvConfigProvider()
