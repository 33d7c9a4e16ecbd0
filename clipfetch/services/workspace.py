"""
Temp-file lifecycle for a single retrieval.

Every file a request creates lives under a stem reserved here, and every
reserved stem is deleted when the workspace is cleaned up. Names carry a
millisecond timestamp plus a random suffix, which is the only thing that
keeps concurrent requests apart in the shared temp directory.
"""
import glob
import logging
import os
import secrets
import time
from typing import List, Optional

from clipfetch.config.settings import config

logger = logging.getLogger(__name__)


class TempWorkspace:
    """Scoped owner of the temp files of one request"""

    def __init__(self, temp_dir: Optional[str] = None, prefix: Optional[str] = None):
        self.temp_dir = temp_dir or config.download.temp_dir
        self.prefix = prefix or config.download.temp_prefix
        self._stems: List[str] = []
        self.closed = False
        os.makedirs(self.temp_dir, exist_ok=True)

    def __enter__(self) -> "TempWorkspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def reserve(self, tag: str = "") -> str:
        """Return a fresh absolute path stem (no extension)"""
        parts = [self.prefix]
        if tag:
            parts.append(tag)
        parts.append(str(int(time.time() * 1000)))
        parts.append(secrets.token_hex(6))
        stem = os.path.join(self.temp_dir, "_".join(parts))
        self._stems.append(stem)
        return stem

    @staticmethod
    def _matches(stem: str) -> List[str]:
        return glob.glob(glob.escape(stem) + ".*")

    def locate(self, stem: str) -> Optional[str]:
        """Finished output for a stem, ignoring partial downloads"""
        for path in sorted(self._matches(stem)):
            if path.endswith((".part", ".ytdl", ".temp")) or ".part-" in path:
                continue
            if os.path.isfile(path):
                return path
        return None

    def discard(self, stem: str) -> None:
        for path in self._matches(stem):
            try:
                os.remove(path)
                logger.debug(f"Removed {path}")
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.error(f"Cleanup error for {path}: {e}")

    def cleanup(self) -> None:
        """Delete everything reserved so far. Safe to call repeatedly."""
        if self.closed:
            return
        self.closed = True
        for stem in self._stems:
            self.discard(stem)
        self._stems.clear()

    @property
    def stems(self) -> List[str]:
        return list(self._stems)
