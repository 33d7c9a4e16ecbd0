import functools
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError
from starlette.background import BackgroundTask

from clipfetch.core.errors import describe_errors
from clipfetch.core.logging import log_error, log_info
from clipfetch.core.security import SecurityValidator, UrlValidationResult
from clipfetch.i18n import i18n
from clipfetch.infra.rate_limit import rate_limiter
from clipfetch.models.request import DownloadRequest
from clipfetch.models.response import ErrorResponse
from clipfetch.services.download import DownloadService
from clipfetch.utils.locale import get_locale, safe_url_for_log

router = APIRouter()

@router.get(
    "/download",
    response_class=StreamingResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    dependencies=[Depends(rate_limiter)]
)
async def download_media(
    request: Request,
    url: Optional[str] = Query(None, description="Video URL"),
    mode: str = Query("video", description="video or audio"),
    quality: str = Query("720p", description="Max video height"),
    container: str = Query("mp4", description="mp4, webm, mkv, mp3, m4a"),
    bitrate: str = Query("192", description="Audio bitrate in kbps"),
    start: Optional[str] = Query(None, description="Trim start, HH:MM:SS"),
    end: Optional[str] = Query(None, description="Trim end, HH:MM:SS"),
):
    """Download, optionally trim, and stream a media file"""

    locale = get_locale(request.headers.get("accept-language"))
    _ = functools.partial(i18n.get, locale=locale)

    if SecurityValidator.validate_url(url) != UrlValidationResult.OK:
        raise HTTPException(status_code=400, detail=_("error.invalid_url"))

    if mode not in ("video", "audio"):
        raise HTTPException(status_code=400, detail=_("error.invalid_mode"))

    try:
        download_request = DownloadRequest(
            url=url,
            mode=mode,
            quality=quality,
            container=container,
            bitrate=bitrate,
            start=start or None,
            end=end or None,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=describe_errors(e.errors(), locale))

    intent = download_request.to_intent()
    log_info(request, f"Download requested: {safe_url_for_log(intent.url)} mode={intent.mode.value}")

    try:
        media = await DownloadService.retrieve(intent, request, locale)
    except HTTPException as e:
        log_error(request, f"Download error: {e.detail}")
        raise

    log_info(request, f"Serving {media.filename} as {media.media_type}")
    return StreamingResponse(
        media.body,
        media_type=media.media_type,
        headers=media.headers,
        background=BackgroundTask(media.workspace.cleanup)
    )
