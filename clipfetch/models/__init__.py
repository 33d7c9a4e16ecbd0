from .internal import MediaTarget, Mode, RetrievalIntent
from .request import DownloadRequest, InfoRequest
from .response import ApiDescription, ErrorResponse, FullHealthStatus, HealthStatus, SourceMetadata

__all__ = [
    "ApiDescription", "DownloadRequest", "ErrorResponse", "FullHealthStatus", "HealthStatus",
    "InfoRequest", "MediaTarget", "Mode", "RetrievalIntent", "SourceMetadata",
]
