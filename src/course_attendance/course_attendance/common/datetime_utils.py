from __future__ import annotations

from datetime import datetime

from ..core.constants import SCANNER_DATE_FORMAT


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 string (``YYYY-MM-DDTHH:MM[:SS]``) into datetime."""
    return datetime.fromisoformat(value.strip())


def parse_scanner_datetime(value: str) -> datetime:
    """Parse the ``dd/mm/YYYY HH:MM:SS`` stamp written by the scanners.

    Raises ValueError for impossible dates such as 31/02.
    """
    return datetime.strptime(value.strip(), SCANNER_DATE_FORMAT)


def format_userdate(value: datetime) -> str:
    """Human readable stamp used in remarks and live check-off replies."""
    return value.strftime("%A, %d %B %Y, %I:%M %p")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
