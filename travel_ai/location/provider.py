import asyncio
import logging
from typing import Dict, Optional, Protocol

from travel_ai.config import LOCATION_WAIT_TIMEOUT_S
from travel_ai.errors import (
    LocationError,
    LocationTimeoutError,
    LocationUnavailableError,
    PermissionDeniedError,
)
from travel_ai.models import Coordinate, PermissionStatus, PermissionType

logger = logging.getLogger(__name__)

# Fixed test locations.
PRESET_LOCATIONS: Dict[str, Coordinate] = {
    "edinburgh_leith": Coordinate(latitude=55.9701, longitude=-3.1894),
    "wroclaw_hiszpanska": Coordinate(latitude=51.1080, longitude=17.0310),
    "bangkok_suuncity": Coordinate(latitude=13.7367, longitude=100.5339),
}


class LocationProvider(Protocol):
    async def current_location(self) -> Coordinate:
        """Return a best-effort fix or raise a LocationError."""
        ...


class PermissionGate:
    """Device-reported permission statuses, queried before location or camera use."""

    _FINAL = (PermissionStatus.GRANTED, PermissionStatus.DENIED, PermissionStatus.RESTRICTED)

    def __init__(self):
        self._statuses: Dict[PermissionType, PermissionStatus] = {
            kind: PermissionStatus.NOT_DETERMINED for kind in PermissionType
        }

    def status(self, kind: PermissionType) -> PermissionStatus:
        return self._statuses[kind]

    def is_granted(self, kind: PermissionType) -> bool:
        return self._statuses[kind] == PermissionStatus.GRANTED

    def report(self, kind: PermissionType, status: PermissionStatus) -> PermissionStatus:
        """Record a status change and return the status now in effect.

        ``not_determined`` is transient while the device dialog is open, so it
        never replaces a final answer.
        """
        current = self._statuses[kind]
        if status == PermissionStatus.NOT_DETERMINED and current in self._FINAL:
            logger.debug("Ignoring transient %s permission status", kind.value)
            return current
        if status != current:
            logger.info("Permission %s: %s -> %s", kind.value, current.value, status.value)
        self._statuses[kind] = status
        return status


class DeviceLocationProvider:
    """Location fed by the device: the client reports fixes and failures.

    ``current_location`` returns the freshest fix, or waits for the next
    report up to ``wait_timeout`` seconds. Only one caller waits at a time.
    """

    def __init__(self, permissions: PermissionGate, wait_timeout: float = LOCATION_WAIT_TIMEOUT_S):
        self._permissions = permissions
        self._wait_timeout = wait_timeout
        self._latest: Optional[Coordinate] = None
        self._failure: Optional[LocationError] = None
        self._updated = asyncio.Event()
        self._lock = asyncio.Lock()

    @property
    def permissions(self) -> PermissionGate:
        return self._permissions

    def report_fix(self, coordinate: Coordinate) -> None:
        logger.info("Location fix reported (accuracy=%.1f)", coordinate.accuracy)
        self._permissions.report(PermissionType.LOCATION, PermissionStatus.GRANTED)
        self._latest = coordinate
        self._failure = None
        self._updated.set()

    def report_failure(self, error: LocationError) -> None:
        if isinstance(error, PermissionDeniedError):
            logger.warning("User denied location permissions.")
            self._permissions.report(PermissionType.LOCATION, PermissionStatus.DENIED)
        else:
            logger.warning("Location error reported: %s", error)
        self._latest = None
        self._failure = error
        self._updated.set()

    async def current_location(self) -> Coordinate:
        if self._permissions.status(PermissionType.LOCATION) in (
            PermissionStatus.DENIED,
            PermissionStatus.RESTRICTED,
        ):
            raise PermissionDeniedError()

        async with self._lock:
            if isinstance(self._failure, PermissionDeniedError) and self._permissions.is_granted(
                PermissionType.LOCATION
            ):
                logger.info("Location permission granted again, discarding the denial")
                self._failure = None

            if self._latest is None and self._failure is None:
                self._updated.clear()
                logger.info("Waiting up to %.1fs for a location fix", self._wait_timeout)
                try:
                    await asyncio.wait_for(self._updated.wait(), timeout=self._wait_timeout)
                except asyncio.TimeoutError:
                    raise LocationTimeoutError() from None

            if self._failure is not None:
                raise type(self._failure)(str(self._failure))
            if self._latest is None:
                raise LocationUnavailableError()
            return self._latest


class StaticLocationProvider:
    """Always answers with the same coordinate."""

    def __init__(self, coordinate: Coordinate = PRESET_LOCATIONS["edinburgh_leith"]):
        self._coordinate = coordinate
        self.calls = 0

    async def current_location(self) -> Coordinate:
        self.calls += 1
        return self._coordinate
