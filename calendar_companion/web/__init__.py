"""Web front end for the calendar companion."""

from .server import CompanionWebServer

__all__ = ["CompanionWebServer"]
