import re
from urllib.parse import quote


def sanitize_filename(name: str, max_length: int = 100, fallback: str = "video") -> str:
    """Reduce a title to a conservative ASCII filename stem"""
    name = re.sub(r"[^a-zA-Z0-9\-_ ]", "_", name or "")
    name = re.sub(r"\s+", " ", name).strip()
    return name[:max_length].strip() or fallback


def content_disposition(filename: str) -> str:
    # Both forms, for clients that ignore RFC 5987
    ascii_name = filename.replace('"', "_")
    return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"
