import json
import logging
import os
import tempfile
from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class ServerConfig(BaseModel):
    host: str = Field(default="0.0.0.0", description="Listening interface")
    port: int = Field(default=3000, ge=1, le=65535, description="Listening port")


class ApiConfig(BaseModel):
    title: str = Field(default="YouTube Downloader API", description="API title")
    description: str = Field(default="Metadata and media retrieval over yt-dlp and ffmpeg", description="API description")
    version: str = Field(default="1.0.0", description="API version")
    cors_origins: List[str] = Field(default=["*"], description="CORS allowed origins")
    debug: bool = Field(default=False, description="Enable debug mode (exposes /docs)")


class ToolsConfig(BaseModel):
    ytdlp_path: str = Field(default="yt-dlp", description="Path to the yt-dlp executable")
    ffmpeg_path: str = Field(default="ffmpeg", description="Path to the ffmpeg executable")
    info_timeout: float = Field(default=60.0, gt=0, description="Metadata fetch timeout in seconds")
    download_timeout: float = Field(default=3600.0, gt=0, description="Download timeout in seconds")
    trim_timeout: float = Field(default=600.0, gt=0, description="Trim timeout in seconds")
    version_timeout: float = Field(default=10.0, gt=0, description="Version probe timeout in seconds")


class LimitsConfig(BaseModel):
    max_duration: int = Field(default=3600, ge=1, description="Maximum source duration in seconds")


class DownloadConfig(BaseModel):
    temp_dir: str = Field(default_factory=tempfile.gettempdir, description="Scratch directory for temp files")
    temp_prefix: str = Field(default="ytdl", description="Prefix of every temp file name")
    chunk_size: int = Field(default=1024 * 1024, ge=1024, description="Streaming chunk size in bytes")
    stderr_max_lines: int = Field(default=50, ge=1, description="Tool diagnostic lines kept per process")


class SecurityConfig(BaseModel):
    allowed_hosts: List[str] = Field(
        default=["youtube.com", "youtu.be", "youtube-nocookie.com"],
        description="Media hosts accepted by /info and /download (sub-domains included)"
    )


class RateLimitConfig(BaseModel):
    enabled: bool = Field(default=False, description="Enable redis-backed rate limiting")
    max_requests: int = Field(default=30, ge=1, description="Max requests per window")
    window_seconds: int = Field(default=60, ge=1, description="Rate limit window in seconds")


class RedisConfig(BaseModel):
    url: str = Field(default="redis://localhost:6379", description="Redis connection URL")
    socket_timeout: int = Field(default=5, description="Redis socket timeout in seconds")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="%(message)s", description="Log format")
    enable_rich: bool = Field(default=True, description="Enable rich console logging")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class I18nConfig(BaseModel):
    default_locale: str = Field(default="en", description="Default locale")
    supported_locales: List[str] = Field(default=["en", "ja"], description="Supported locales")


class Config(BaseSettings):
    """Main configuration model"""
    model_config = SettingsConfigDict(env_prefix="CLIPFETCH_", env_nested_delimiter="__")

    server: ServerConfig = Field(default_factory=ServerConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    i18n: I18nConfig = Field(default_factory=I18nConfig)

    @classmethod
    def load_from_file(cls, config_path: str) -> "Config":
        """Load configuration from JSON file"""
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_data = json.load(f)
            logger.info(f"Configuration loaded from {config_path}")
            return cls(**config_data)
        except Exception as e:
            logger.error(f"Failed to load config from {config_path}: {str(e)}")
            logger.info("Using environment configuration")
            return cls.load_from_env()

    @classmethod
    def load_from_env(cls) -> "Config":
        """Overlay the well-known flat environment variables"""
        config_data: Dict[str, Dict[str, Any]] = {}

        def put(section: str, key: str, value: Any) -> None:
            config_data.setdefault(section, {})[key] = value

        if os.getenv("HOST"):
            put("server", "host", os.getenv("HOST"))
        if os.getenv("PORT"):
            put("server", "port", int(os.getenv("PORT")))

        if os.getenv("CORS_ORIGIN"):
            origins = [o.strip() for o in os.getenv("CORS_ORIGIN").split(",") if o.strip()]
            put("api", "cors_origins", origins or ["*"])

        if os.getenv("YT_DLP_PATH"):
            put("tools", "ytdlp_path", os.getenv("YT_DLP_PATH"))
        if os.getenv("FFMPEG_PATH"):
            put("tools", "ffmpeg_path", os.getenv("FFMPEG_PATH"))

        if os.getenv("MAX_DURATION"):
            put("limits", "max_duration", int(os.getenv("MAX_DURATION")))

        if os.getenv("TEMP_DIR"):
            put("download", "temp_dir", os.getenv("TEMP_DIR"))

        if os.getenv("REDIS_URL"):
            put("redis", "url", os.getenv("REDIS_URL"))

        if os.getenv("RATE_LIMIT_ENABLED"):
            put("rate_limit", "enabled", os.getenv("RATE_LIMIT_ENABLED").lower() == "true")
        if os.getenv("RATE_LIMIT_REQUESTS"):
            put("rate_limit", "max_requests", int(os.getenv("RATE_LIMIT_REQUESTS")))
        if os.getenv("RATE_LIMIT_WINDOW"):
            put("rate_limit", "window_seconds", int(os.getenv("RATE_LIMIT_WINDOW")))

        if os.getenv("LOG_LEVEL"):
            put("logging", "level", os.getenv("LOG_LEVEL"))

        if os.getenv("DEFAULT_LOCALE"):
            put("i18n", "default_locale", os.getenv("DEFAULT_LOCALE"))

        return cls(**config_data)


def load_config() -> Config:
    """Load configuration with priority: config file > env vars > defaults"""
    config_path = os.getenv("CONFIG_PATH", "config.json")

    if os.path.exists(config_path):
        return Config.load_from_file(config_path)

    logger.debug(f"Config file not found at {config_path}, checking environment variables")
    return Config.load_from_env()


config = load_config()
