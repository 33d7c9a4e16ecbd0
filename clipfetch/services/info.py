import asyncio
import functools
import json
import logging

from fastapi import HTTPException

from clipfetch.config.settings import config
from clipfetch.i18n import i18n
from clipfetch.models.response import SourceMetadata
from clipfetch.services.tools import SubprocessExecutor, ToolNotFoundError, YTDLPCommandBuilder

logger = logging.getLogger(__name__)

STDERR_MAX_CHARS = 1000

class MetadataService:
    """Video metadata fetching service"""

    @staticmethod
    async def fetch(url: str, locale: str = None) -> SourceMetadata:
        """
        Fetch metadata with a single yt-dlp call.
        Never cached: every request sees what the host reports right now.
        """
        _ = functools.partial(i18n.get, locale=locale)
        cmd = YTDLPCommandBuilder.build_info_command(url)
        timeout = config.tools.info_timeout

        try:
            result = await SubprocessExecutor.run(cmd, timeout=timeout)
        except ToolNotFoundError as e:
            raise HTTPException(status_code=500, detail=_("error.tool_error", tool="yt-dlp", reason=e.reason))
        except asyncio.TimeoutError:
            raise HTTPException(status_code=504, detail=_("error.timeout", tool="yt-dlp", seconds=timeout))

        if result.returncode != 0:
            error_msg = result.stderr.decode(errors="replace").strip()
            raise HTTPException(
                status_code=500,
                detail=_("error.fetch_info_failed", reason=error_msg[-STDERR_MAX_CHARS:])
            )

        try:
            info = json.loads(result.stdout.decode(errors="replace"))
            if not isinstance(info, dict):
                raise ValueError("top-level JSON is not an object")
            return SourceMetadata(
                id=info.get("id"),
                title=info.get("title") or "video",
                duration=info.get("duration"),
                thumbnail=info.get("thumbnail"),
                uploader=info.get("uploader"),
                upload_date=info.get("upload_date"),
            )
        except ValueError as e:
            logger.error(f"Unparseable yt-dlp output: {e}")
            raise HTTPException(status_code=500, detail=_("error.parse_failed"))

    @staticmethod
    def check_duration(metadata: SourceMetadata, locale: str = None) -> None:
        """Reject sources longer than the configured ceiling"""
        limit = config.limits.max_duration
        if (metadata.duration or 0) > limit:
            minutes = f"{limit / 60:g}"
            raise HTTPException(
                status_code=500,
                detail=i18n.get("error.too_long", locale=locale, minutes=minutes)
            )
