from enum import Enum
from pydantic import BaseModel, ConfigDict
from typing import Optional

class Mode(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"

class RetrievalIntent(BaseModel):
    """Internal retrieval request (separated from HTTP concerns)"""
    model_config = ConfigDict(frozen=True)

    url: str
    mode: Mode
    quality: int
    container: str
    bitrate: int
    start: Optional[float] = None
    end: Optional[float] = None

    @property
    def audio_only(self) -> bool:
        return self.mode == Mode.AUDIO

    @property
    def wants_trim(self) -> bool:
        return self.start is not None or self.end is not None

class MediaTarget(BaseModel):
    """What to ask yt-dlp for and how to label the result"""
    model_config = ConfigDict(frozen=True)

    format_str: str
    ext: str
    media_type: str
    label: str
    extract_audio: bool = False
