from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol

import httpx

from bootcamp_api.core.config import settings

logger = logging.getLogger(__name__)


class GeocodingError(Exception):
    pass


@dataclass(frozen=True)
class GeocodeResult:
    latitude: float
    longitude: float
    formatted_address: str | None = None
    street_name: str | None = None
    city: str | None = None
    state: str | None = None
    zipcode: str | None = None
    country: str | None = None


class Geocoder(Protocol):
    def geocode(self, address: str) -> list[GeocodeResult]:
        ...


def _clean(value: Any) -> str | None:
    text = str(value or "").strip()
    return text or None


def _format_address(parts: list[str | None]) -> str | None:
    joined = ", ".join(p for p in parts if p)
    return joined or None


class MapQuestGeocoder:
    def __init__(self, api_key: str, url: str, timeout: float = 5.0, transport: httpx.BaseTransport | None = None):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.transport = transport

    def geocode(self, address: str) -> list[GeocodeResult]:
        location = str(address or "").strip()
        if not location:
            raise GeocodingError("Empty address")
        if not self.api_key:
            raise GeocodingError("GEOCODER_API_KEY is not configured")
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(self.url, params={"key": self.api_key, "location": location})
        except httpx.HTTPError as exc:
            raise GeocodingError(f"Geocoder request failed: {exc}") from exc
        if response.status_code >= 400:
            raise GeocodingError(f"Geocoder returned HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise GeocodingError("Geocoder returned invalid JSON") from exc
        return self._parse(payload)

    @staticmethod
    def _parse(payload: dict) -> list[GeocodeResult]:
        out: list[GeocodeResult] = []
        for result in payload.get("results") or []:
            for loc in result.get("locations") or []:
                lat_lng = loc.get("latLng") or {}
                if lat_lng.get("lat") is None or lat_lng.get("lng") is None:
                    continue
                street = _clean(loc.get("street"))
                city = _clean(loc.get("adminArea5"))
                state = _clean(loc.get("adminArea3"))
                zipcode = _clean(loc.get("postalCode"))
                country = _clean(loc.get("adminArea1"))
                out.append(
                    GeocodeResult(
                        latitude=float(lat_lng["lat"]),
                        longitude=float(lat_lng["lng"]),
                        formatted_address=_format_address([street, city, f"{state or ''} {zipcode or ''}".strip(), country]),
                        street_name=street,
                        city=city,
                        state=state,
                        zipcode=zipcode,
                        country=country,
                    )
                )
        return out


def first_result(geocoder: Geocoder, address: str) -> GeocodeResult:
    results = geocoder.geocode(address)
    if not results:
        raise GeocodingError(f'No location found for "{address}"')
    return results[0]


@lru_cache(maxsize=1)
def get_geocoder() -> Geocoder:
    provider = str(settings.GEOCODER_PROVIDER or "").strip().lower()
    if provider != "mapquest":
        logger.warning("Unknown GEOCODER_PROVIDER %r, using mapquest", provider)
    return MapQuestGeocoder(
        api_key=str(settings.GEOCODER_API_KEY or "").strip(),
        url=settings.GEOCODER_URL,
        timeout=float(settings.GEOCODER_TIMEOUT_SECONDS),
    )
