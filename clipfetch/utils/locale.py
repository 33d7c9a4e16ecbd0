from typing import Optional
from urllib.parse import urlparse
from clipfetch.config.settings import config

def get_locale(accept_language: Optional[str] = None) -> str:
    """Extract locale from Accept-Language header"""
    if not accept_language:
        return config.i18n.default_locale
    
    for lang in accept_language.split(","):
        locale = lang.strip().split(";")[0].split("-")[0].lower()
        if locale in config.i18n.supported_locales:
            return locale
    
    return config.i18n.default_locale

def safe_url_for_log(url: Optional[str]) -> str:
    """URL without query string or credentials, for log lines"""
    try:
        parsed = urlparse(url or "")
        host = parsed.hostname or ""
        base_url = f"{parsed.scheme}://{host}{parsed.path}"
        
        if parsed.query:
            return f"{base_url}?..."
        
        return base_url
    except ValueError:
        return "invalid_url"
