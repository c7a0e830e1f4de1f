import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import requests

from .errors import EmptyCatalog, FetchFailed, ParseFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Station:
    name: str
    url: str

    def to_dict(self) -> dict:
        return {"name": self.name, "url": self.url}


def stations_from_json(data) -> Tuple[Station, ...]:
    """
    Validate a decoded station list payload.

    Expects a non-empty list of {"name": str, "url": str} objects. Extra keys
    are ignored. Order is kept and duplicates stay distinct entries.
    """
    if not isinstance(data, list):
        raise ParseFailed(f"expected a JSON array of stations, got {type(data).__name__}")

    stations = []
    for pos, item in enumerate(data):
        if not isinstance(item, dict):
            raise ParseFailed(f"station #{pos} is not an object")
        name = item.get("name")
        url = item.get("url")
        if not isinstance(name, str) or not isinstance(url, str) or not url:
            raise ParseFailed(f"station #{pos} needs string 'name' and 'url' fields")
        if "\x00" in url:
            raise ParseFailed(f"station #{pos} url contains a NUL byte")
        stations.append(Station(name=name, url=url))

    if not stations:
        raise EmptyCatalog("station list is empty")
    return tuple(stations)


def load_stations(
    url: str,
    timeout: float = 20.0,
    session: Optional[requests.Session] = None,
) -> Tuple[Station, ...]:
    """Fetch the station catalog once. Any failure is fatal to startup."""
    http = session or requests
    try:
        resp = http.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise FetchFailed(f"failed to fetch radio stations from {url}: {e}") from e

    try:
        data = resp.json()
    except ValueError as e:
        raise ParseFailed(f"station list from {url} is not valid JSON: {e}") from e

    stations = stations_from_json(data)
    logger.info("Loaded %d radio stations", len(stations))
    return stations
