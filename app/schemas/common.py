"""
Field helpers shared by booking and event schemas
"""

from datetime import time
from typing import Annotated
import re

from pydantic import BeforeValidator

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])(?::([0-5][0-9]))?$")


def parse_event_time(value):
    """Accept ``H:MM``/``HH:MM`` strings (seconds optional) and time objects"""
    if isinstance(value, time) or value is None:
        return value
    match = TIME_PATTERN.match(str(value).strip())
    if not match:
        raise ValueError("Event time must be in HH:MM format")
    hours, minutes, seconds = match.groups()
    return time(int(hours), int(minutes), int(seconds or 0))


EventTime = Annotated[time, BeforeValidator(parse_event_time)]
