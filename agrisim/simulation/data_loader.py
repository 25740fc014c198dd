# Satellite data client for the agrisim weekly simulation
# Layer 3: Simulation Engine (external collaborator)
#
# Fetches MODIS/SMAP/GISS/OCO-2/Landsat envelopes from the hosted data
# function. Responses are cached in memory per (data_type, location) for a
# TTL. Failures are downgraded to a warning plus an optional user-facing
# notification and None is returned; the simulation never depends on this.

import logging
import time
from dataclasses import replace

import requests

from agrisim.errors import DataFetchError
from agrisim.settings.loader import get_default_settings
from agrisim.simulation.metrics import score_outcome
from agrisim.simulation.state import LocationRef

logger = logging.getLogger(__name__)


DATA_TYPES = ("MODIS", "SMAP", "GISS", "OCO-2", "Landsat")
FUNCTION_PATH = "/functions/v1/nasa-data"


class SatelliteDataClient:
    """Client for the hosted satellite data function.

    Args:
        base_url: Service root (settings.data_service.base_url if None)
        api_key: Bearer key sent with each request
        timeout_s: Request timeout in seconds
        cache_ttl_hours: How long a response is reused for the same key
        session: requests.Session-like object with post(); created if None
        notify: Optional callable(title, message) for user-facing errors
        clock: Callable returning seconds, used for cache expiry
        settings: SimulationSettings (packaged defaults if None)
    """

    def __init__(self, base_url=None, api_key=None, timeout_s=None, cache_ttl_hours=None,
                 session=None, notify=None, clock=None, settings=None):
        ds = (settings or get_default_settings()).data_service
        self.base_url = (base_url or ds.base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else ds.api_key
        self.timeout_s = timeout_s if timeout_s is not None else ds.timeout_s
        self.cache_ttl_s = (cache_ttl_hours if cache_ttl_hours is not None else ds.cache_ttl_hours) * 3600
        self.session = session or requests.Session()
        self.notify = notify
        self.clock = clock or time.time
        self.last_error = None
        self._cache = {}  # {(data_type, location): (expires_at, envelope)}

    @property
    def url(self):
        return f"{self.base_url}{FUNCTION_PATH}"

    def _headers(self):
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
            headers["apikey"] = self.api_key
        return headers

    def _cache_get(self, key):
        entry = self._cache.get(key)
        if entry is None:
            return None
        expires_at, envelope = entry
        if self.clock() >= expires_at:
            del self._cache[key]
            return None
        return envelope

    def clear_cache(self):
        self._cache.clear()

    def _request(self, payload):
        """POST payload and return the decoded envelope.

        Raises:
            DataFetchError: On transport error, HTTP error status, invalid
                JSON, or an error body from the service
        """
        try:
            response = self.session.post(
                self.url, json=payload, headers=self._headers(), timeout=self.timeout_s
            )
            response.raise_for_status()
            envelope = response.json()
        except requests.exceptions.RequestException as e:
            raise DataFetchError(f"{payload['dataType']} request failed: {e}") from e
        except ValueError as e:
            raise DataFetchError(f"{payload['dataType']} response is not valid JSON: {e}") from e

        if not isinstance(envelope, dict):
            raise DataFetchError(f"{payload['dataType']} response is not an object")
        if "error" in envelope:
            raise DataFetchError(f"{payload['dataType']} service error: {envelope['error']}")
        return envelope

    def fetch(self, data_type, location=None, lat=None, lon=None, date_range=None, parameters=None):
        """Fetch one dataset envelope, or None if the request failed.

        Args:
            data_type: One of MODIS, SMAP, GISS, OCO-2, Landsat
            location: Free-form location key; built from lat/lon if omitted
            lat, lon: Coordinates of the field
            date_range: Optional (start_date, end_date) ISO strings
            parameters: Optional dict forwarded to the service

        Returns:
            dict envelope, or None on failure

        Raises:
            ValueError: If data_type is not supported
        """
        if data_type not in DATA_TYPES:
            raise ValueError(f"Unsupported data type '{data_type}'. Valid: {', '.join(DATA_TYPES)}")

        if location is None:
            location = f"{lat},{lon}" if lat is not None and lon is not None else "global"

        key = (data_type, location)
        cached = self._cache_get(key)
        if cached is not None:
            logger.debug("Returning cached %s data for %s", data_type, location)
            return cached

        payload = {"dataType": data_type, "location": location}
        if date_range:
            payload["startDate"], payload["endDate"] = date_range
        if parameters:
            payload["parameters"] = dict(parameters)

        try:
            envelope = self._request(payload)
        except DataFetchError as e:
            self.last_error = e
            logger.warning("Satellite data unavailable: %s", e)
            if self.notify is not None:
                self.notify("NASA Data Error", str(e))
            return None

        self.last_error = None
        self._cache[key] = (self.clock() + self.cache_ttl_s, envelope)
        return envelope

    def fetch_smap(self, location=None):
        return self.fetch("SMAP", location=location)

    def fetch_modis(self, location=None):
        return self.fetch("MODIS", location=location)


def seed_from_location(state, lat, lon, client, settings=None):
    """Record the selected location and seed soil moisture from SMAP data.

    Before the first tick the week-1 history point is rewritten with the
    seeded moisture and the outcome is rescored. The state keeps its current
    moisture if the fetch fails or the envelope has no average_moisture.

    Returns:
        The SMAP envelope, or None
    """
    state.location = LocationRef(lat=lat, lon=lon)
    envelope = client.fetch_smap(f"{lat},{lon}")
    if not envelope:
        return None

    moisture = (envelope.get("data") or {}).get("average_moisture")
    if moisture is None:
        return envelope

    outcome = state.outcome
    outcome.soil_moisture_pct = max(0.0, min(100.0, float(moisture)))
    history = outcome.weekly_history
    if state.current_week == 1 and history:
        history[0] = replace(history[0], moisture=outcome.soil_moisture_pct)
    state.outcome = score_outcome(outcome, settings)
    logger.info("Seeded soil moisture %.1f%% for %s", state.outcome.soil_moisture_pct, state.location.name)
    return envelope
