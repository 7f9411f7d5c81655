# Helpers - Utility Functions
# Console formatting helpers shared by every account connection

"""
Helpers Module

Provides utility functions for:
- Account prefixes (colored, zero-padded index)
- Point totals (right-aligned, colored)
- Timestamp parsing and 24-hour local time formatting
"""

from datetime import datetime, timezone
from typing import Optional, Union

from colorama import Fore, Style

ACCOUNT_COLOR = Fore.MAGENTA + Style.BRIGHT
POINTS_COLOR = Fore.GREEN + Style.BRIGHT
POINTS_WIDTH = 6


def format_account_prefix(account_index: int) -> str:
    """
    Build the colored account label used on every log line

    Args:
        account_index: 1-based account position

    Returns:
        Colored label (e.g., "Account 01")
    """
    return f"{ACCOUNT_COLOR}Account {account_index:02d}{Style.RESET_ALL}"


def format_points(points: Union[int, float]) -> str:
    """Right-align a point value to a fixed width and color it"""
    if isinstance(points, float) and points.is_integer():
        points = int(points)
    return f"{POINTS_COLOR}{str(points).rjust(POINTS_WIDTH)}{Style.RESET_ALL}"


def format_message(prefix: str, message: str) -> str:
    return f"{prefix} > {message}"


def parse_timestamp(value: Union[str, int, float]) -> datetime:
    """
    Convert a server timestamp to an aware datetime

    Args:
        value: ISO-8601 string (a trailing "Z" is accepted) or Unix
            timestamp in milliseconds

    Returns:
        Timezone-aware datetime (naive ISO strings are taken as UTC)

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Invalid timestamp: {value!r}") from e

    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt

    raise ValueError(f"Invalid timestamp: {value!r}")


def format_time(moment: Optional[datetime] = None) -> str:
    """
    Format a moment as local 24-hour clock time

    Args:
        moment: Datetime to format (defaults to now)

    Returns:
        Time string (HH:MM:SS)
    """
    if moment is None:
        moment = datetime.now().astimezone()
    elif moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime("%H:%M:%S")
