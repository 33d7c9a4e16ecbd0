import re
from typing import Optional

_CLOCK = re.compile(r"^(?:(\d+):)?([0-5]?\d):([0-5]?\d(?:\.\d+)?)$")
_SECONDS = re.compile(r"^\d+(?:\.\d+)?$")


def parse_timestamp(value: Optional[str]) -> Optional[float]:
    """
    Parse HH:MM:SS[.ms], MM:SS or plain seconds into seconds.
    Returns None for empty input; raises ValueError for anything else.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None

    if _SECONDS.match(value):
        return float(value)

    match = _CLOCK.match(value)
    if not match:
        raise ValueError(f"Invalid timestamp '{value}', expected HH:MM:SS")

    hours, minutes, seconds = match.groups()
    return int(hours or 0) * 3600 + int(minutes) * 60 + float(seconds)


def format_timestamp(seconds: float) -> str:
    """Render seconds as HH:MM:SS[.mmm] for ffmpeg"""
    millis = int(round(seconds * 1000))
    hours, rest = divmod(millis, 3600 * 1000)
    minutes, rest = divmod(rest, 60 * 1000)
    secs, millis = divmod(rest, 1000)
    text = f"{hours:02d}:{minutes:02d}:{secs:02d}"
    if millis:
        text += f".{millis:03d}"
    return text
