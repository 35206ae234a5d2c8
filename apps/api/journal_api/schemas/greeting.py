"""Greeting schema."""

from pydantic import BaseModel


class Greeting(BaseModel):
    greeting: str
    city: str
    feels_like: float
