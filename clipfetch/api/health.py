from datetime import datetime, timezone

from fastapi import APIRouter
from redis.exceptions import RedisError

from clipfetch.config.settings import config
from clipfetch.core.state import state
from clipfetch.i18n import i18n
from clipfetch.models.response import ApiDescription, FullHealthStatus, HealthStatus

router = APIRouter()

HEALTH_OK = "ok"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/", response_model=ApiDescription)
async def root():
    """API description"""
    return ApiDescription(
        name=config.api.title,
        version=config.api.version,
        endpoints={
            "health": "GET /health",
            "download": (
                "GET /download?url=<youtube-url>&mode=video|audio&quality=720p"
                "&container=mp4&bitrate=192&start=00:00:00&end=00:05:00"
            ),
            "info": "GET /info?url=<youtube-url>",
        },
    )


@router.get("/health", response_model=HealthStatus)
async def health_check():
    """Liveness only"""
    return HealthStatus(status=HEALTH_OK, timestamp=_now())


@router.get("/health/full", response_model=FullHealthStatus)
async def health_check_full():
    """Liveness plus tool versions and redis status"""
    redis_status = i18n.get("response.redis_disabled")
    if state.redis:
        try:
            await state.redis.ping()
            redis_status = i18n.get("response.redis_connected")
        except (RedisError, OSError):
            redis_status = i18n.get("response.redis_disconnected")

    return FullHealthStatus(
        status=HEALTH_OK,
        timestamp=_now(),
        ytdlp_version=state.ytdlp_version,
        ffmpeg_version=state.ffmpeg_version,
        max_duration=config.limits.max_duration,
        redis=redis_status,
    )
