# Message Parser - JSON Parsing
# Parser for Teneo server status messages

"""
Message Parser Module

Responsibilities:
- Parse JSON frames received from the server
- Classify the `message` discriminator
- Convert recognised status messages to StatusMessage dataclasses
- Reject malformed frames with MessageParseError

Recognised messages:
    {"message": "Connected successfully", "date": ..., "pointsToday": 12, "pointsTotal": 345}
    {"message": "Pulse from server",      "date": ..., "pointsToday": 12, "pointsTotal": 345}

Frames with any other `message` value are ignored (parse returns None).
"""

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from numbers import Real
from typing import Optional, Union

from ..utils.helpers import parse_timestamp


class MessageType(Enum):
    """Server status message kinds"""
    CONNECTED = "Connected successfully"
    PULSE = "Pulse from server"


PING_FRAME = {"type": "PING"}


class MessageParseError(ValueError):
    """Raised when a frame does not match the status message structure"""


@dataclass
class StatusMessage:
    """Status message data structure"""
    message_type: MessageType
    date: datetime  # local time
    points_today: Union[int, float]
    points_total: Union[int, float]


def _points(data: dict, field: str) -> Union[int, float]:
    value = data.get(field)
    if isinstance(value, bool) or not isinstance(value, Real):
        raise MessageParseError(f"'{field}' must be a number, got {value!r}")
    return value


def parse_message(raw_message: Union[str, bytes]) -> Optional[StatusMessage]:
    """
    Parse a raw frame

    Args:
        raw_message: Raw JSON text (or bytes) from the WebSocket

    Returns:
        StatusMessage for recognised kinds, None for any other kind

    Raises:
        MessageParseError: If the frame is not a JSON object or a recognised
            message lacks a valid date (one that converts to local time)
            or numeric point fields
    """
    try:
        data = json.loads(raw_message)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise MessageParseError(f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MessageParseError(f"expected a JSON object, got {type(data).__name__}")

    try:
        message_type = MessageType(data.get("message"))
    except ValueError:
        return None

    if "date" not in data:
        raise MessageParseError("missing 'date'")
    try:
        date = parse_timestamp(data["date"]).astimezone()
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise MessageParseError(f"invalid 'date': {e}") from e

    return StatusMessage(
        message_type=message_type,
        date=date,
        points_today=_points(data, "pointsToday"),
        points_total=_points(data, "pointsTotal"),
    )
