from __future__ import annotations

import logging

import httpx

from ..domain.errors import LocationError
from ..domain.models import Location

logger = logging.getLogger(__name__)


def format_place(data: dict) -> str:
    """Place name as "City, Region", falling back to the country."""
    parts = [p for p in (data.get("city"), data.get("region")) if p]
    if not parts and data.get("country_name"):
        parts.append(data["country_name"])
    return ", ".join(parts)


class IpGeolocator:
    """Coarse location from a JSON IP-geolocation endpoint (ipapi.co format)."""

    def __init__(
        self,
        url: str = "https://ipapi.co/json/",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def locate(self) -> Location:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(self._url)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Geolocation lookup failed: %s", e, exc_info=True)
            raise LocationError(f"Geolocation lookup failed: {e}") from e

        try:
            loc = Location(
                latitude=float(data["latitude"]),
                longitude=float(data["longitude"]),
                name=format_place(data),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise LocationError(f"Unexpected geolocation response: {data!r}") from e

        logger.info("Located at lat=%.4f lon=%.4f (%s)", loc.latitude, loc.longitude, loc.name or "?")
        return loc
