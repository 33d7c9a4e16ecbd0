from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from clipfetch.models.internal import Mode, RetrievalIntent
from clipfetch.utils.timestamps import parse_timestamp

VIDEO_CONTAINERS = ("mp4", "webm", "mkv")
AUDIO_CONTAINERS = ("mp3", "m4a", "webm")

class InfoRequest(BaseModel):
    url: str = Field(..., description="Video URL")

class DownloadRequest(InfoRequest):
    mode: Mode = Field(Mode.VIDEO, description="video or audio")
    quality: int = Field(720, ge=144, le=4320, description="Max video height, e.g. 720p")
    container: str = Field("mp4", description="Output container")
    bitrate: int = Field(192, ge=32, le=320, description="Audio bitrate in kbps")
    start: Optional[float] = Field(None, ge=0, description="Trim start (HH:MM:SS or seconds)")
    end: Optional[float] = Field(None, gt=0, description="Trim end (HH:MM:SS or seconds)")

    @field_validator("quality", mode="before")
    @classmethod
    def parse_quality(cls, v):
        """Accept both 720p and 720"""
        if isinstance(v, str):
            v = v.strip().lower().removesuffix("p")
        return v

    @field_validator("bitrate", mode="before")
    @classmethod
    def parse_bitrate(cls, v):
        if isinstance(v, str):
            v = v.strip().lower().removesuffix("k")
        return v

    @field_validator("container", mode="before")
    @classmethod
    def normalize_container(cls, v):
        v = str(v).strip().lower().lstrip(".")
        if v not in VIDEO_CONTAINERS + AUDIO_CONTAINERS:
            raise ValueError(f"Container must be one of {sorted(set(VIDEO_CONTAINERS + AUDIO_CONTAINERS))}")
        return v

    @field_validator("start", "end", mode="before")
    @classmethod
    def parse_time(cls, v):
        if v is None or isinstance(v, (int, float)):
            return v
        return parse_timestamp(v)

    @model_validator(mode="after")
    def check_combination(self):
        if self.mode == Mode.VIDEO and self.container not in VIDEO_CONTAINERS:
            raise ValueError(f"Container '{self.container}' is audio-only; use mode=audio")
        if self.start is not None and self.end is not None and self.end <= self.start:
            raise ValueError("end must be after start")
        return self

    def to_intent(self) -> RetrievalIntent:
        """Convert to retrieval intent"""
        return RetrievalIntent(
            url=self.url,
            mode=self.mode,
            quality=self.quality,
            container=self.container,
            bitrate=self.bitrate,
            start=self.start,
            end=self.end
        )
