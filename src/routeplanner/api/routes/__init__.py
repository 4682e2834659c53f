"""Route group exports."""

from . import datasets, health, route, sessions

__all__ = ["datasets", "health", "route", "sessions"]
