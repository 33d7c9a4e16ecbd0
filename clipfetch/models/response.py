from typing import Dict, Optional

from pydantic import BaseModel


class SourceMetadata(BaseModel):
    """Normalized yt-dlp metadata, fetched fresh per request"""
    id: Optional[str] = None
    title: str = "video"
    duration: Optional[float] = None
    thumbnail: Optional[str] = None
    uploader: Optional[str] = None
    upload_date: Optional[str] = None


class HealthStatus(BaseModel):
    status: str
    timestamp: str


class FullHealthStatus(HealthStatus):
    ytdlp_version: str
    ffmpeg_version: str
    max_duration: int
    redis: str


class ApiDescription(BaseModel):
    name: str
    version: str
    endpoints: Dict[str, str]


class ErrorResponse(BaseModel):
    error: str
