import functools
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from clipfetch.core.logging import log_error, log_info
from clipfetch.core.security import SecurityValidator, UrlValidationResult
from clipfetch.i18n import i18n
from clipfetch.infra.rate_limit import rate_limiter
from clipfetch.models.response import ErrorResponse, SourceMetadata
from clipfetch.services.info import MetadataService
from clipfetch.utils.locale import get_locale, safe_url_for_log

router = APIRouter()

@router.get(
    "/info",
    response_model=SourceMetadata,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    dependencies=[Depends(rate_limiter)]
)
async def get_video_info(request: Request, url: Optional[str] = Query(None, description="Video URL")):
    """Fetch metadata without downloading"""

    locale = get_locale(request.headers.get("accept-language"))
    _ = functools.partial(i18n.get, locale=locale)

    if SecurityValidator.validate_url(url) != UrlValidationResult.OK:
        raise HTTPException(status_code=400, detail=_("error.invalid_url"))

    log_info(request, f"Fetching info for {safe_url_for_log(url)}")

    try:
        metadata = await MetadataService.fetch(url, locale)
    except HTTPException as e:
        log_error(request, f"Info error: {e.detail}")
        raise

    log_info(request, f"Info retrieved: {metadata.title}")
    return metadata
