from .filename import sanitize_filename, content_disposition
from .timestamps import parse_timestamp, format_timestamp

__all__ = ["content_disposition", "format_timestamp", "parse_timestamp", "sanitize_filename"]
