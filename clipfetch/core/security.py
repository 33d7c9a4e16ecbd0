from enum import Enum, auto
from typing import Optional
from urllib.parse import urlparse

from clipfetch.config.settings import config


class UrlValidationResult(Enum):
    """URL validation result without throwing exceptions"""
    OK = auto()
    INVALID = auto()
    UNSUPPORTED_HOST = auto()


class SecurityValidator:
    """
    Validate that a URL points at a supported media host.
    Runs before any external process is spawned.
    """

    @staticmethod
    def host_allowed(hostname: str) -> bool:
        hostname = hostname.lower().rstrip(".")
        for domain in config.security.allowed_hosts:
            domain = domain.lower()
            if hostname == domain or hostname.endswith("." + domain):
                return True
        return False

    @staticmethod
    def validate_url(url: Optional[str]) -> UrlValidationResult:
        if not url:
            return UrlValidationResult.INVALID

        try:
            parsed = urlparse(url)
            hostname = parsed.hostname
        except ValueError:
            return UrlValidationResult.INVALID

        if parsed.scheme not in ("http", "https") or not hostname:
            return UrlValidationResult.INVALID

        if not SecurityValidator.host_allowed(hostname):
            return UrlValidationResult.UNSUPPORTED_HOST

        return UrlValidationResult.OK
