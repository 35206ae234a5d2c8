"""Weather lookup adapter."""

from .client import WeatherClient, WeatherLookupError

__all__ = ["WeatherClient", "WeatherLookupError"]
