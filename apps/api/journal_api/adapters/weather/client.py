"""OpenWeatherMap current-weather client."""

from __future__ import annotations

import httpx


class WeatherLookupError(Exception):
    """Raised when the weather provider cannot answer."""


class WeatherClient:
    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    async def feels_like(self, city: str) -> float:
        """Return the perceived temperature for ``city`` in degrees Celsius."""
        params = {"q": city, "appid": self._api_key, "units": "metric"}
        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds, transport=self._transport) as client:
                response = await client.get(self._base_url, params=params)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise WeatherLookupError(f"Weather lookup failed for {city!r}") from exc

        try:
            return float(payload["main"]["feels_like"])
        except (KeyError, TypeError, ValueError) as exc:
            raise WeatherLookupError("Weather response missing main.feels_like") from exc
