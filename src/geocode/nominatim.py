"""Destination search (place name -> coordinates) via OpenStreetMap Nominatim.

Public Nominatim instances are rate-limited; set a descriptive User-Agent and
do not search on every keystroke.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import requests

LOG = logging.getLogger("geocode.nominatim")


@dataclass(frozen=True)
class Place:
    lat: float
    lng: float
    name: str


@dataclass(frozen=True)
class NominatimConfig:
    base_url: str = "https://nominatim.openstreetmap.org/search"
    user_agent: str = "wakestop/0.1.0 (destination search; please set your own UA)"
    limit: int = 5
    timeout_s: float = 10.0

    @classmethod
    def from_mapping(cls, section: Mapping[str, Any]) -> "NominatimConfig":
        return cls(
            base_url=str(section.get("base_url", cls.base_url)),
            user_agent=str(section.get("user_agent", cls.user_agent)),
            limit=int(section.get("limit", cls.limit)),
            timeout_s=float(section.get("timeout_s", cls.timeout_s)),
        )


def parse_results(data: Any) -> List[Place]:
    """Convert Nominatim JSON into Places, skipping entries without usable coordinates."""
    if not isinstance(data, list):
        return []
    out: List[Place] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        try:
            out.append(Place(lat=float(item["lat"]), lng=float(item["lon"]), name=str(item.get("display_name", ""))))
        except (KeyError, TypeError, ValueError):
            continue
    return out


def search_places(
    query: str,
    cfg: Optional[NominatimConfig] = None,
    session: Optional[requests.Session] = None,
) -> List[Place]:
    """Look up up to `cfg.limit` candidate places for a free-text query.

    Returns an empty list for a blank query or when the service cannot be
    reached; the failure is logged.
    """
    q = (query or "").strip()
    if not q:
        return []
    cfg = cfg or NominatimConfig()
    params: Dict[str, Any] = {"format": "json", "q": q, "limit": cfg.limit}
    headers = {"User-Agent": cfg.user_agent, "Accept": "application/json"}
    http = session or requests
    try:
        resp = http.get(cfg.base_url, params=params, headers=headers, timeout=cfg.timeout_s)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        LOG.warning("destination search failed for %r: %s", q, e)
        return []
    places = parse_results(data)
    LOG.debug("search %r -> %d places", q, len(places))
    return places


__all__ = ["Place", "NominatimConfig", "parse_results", "search_places"]
