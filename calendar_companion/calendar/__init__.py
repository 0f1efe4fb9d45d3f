"""Google Calendar access."""

from .client import GoogleCalendarClient, parse_http_error

__all__ = ["GoogleCalendarClient", "parse_http_error"]
