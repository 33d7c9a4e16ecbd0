import json
import logging
import os
from typing import Dict, Any, List, Optional
from clipfetch.config.settings import config

logger = logging.getLogger(__name__)

FALLBACK_LOCALE = "en"

class I18n:
    """
    Message catalogue lookup.

    A key is resolved in the requested locale, then the configured default,
    then English. A key missing everywhere comes back unchanged.
    """

    def __init__(self):
        self.locales: Dict[str, Dict[str, Any]] = {}
        self.default_locale = config.i18n.default_locale
        self.load_locales()

    def load_locales(self):
        """Load locale files from clipfetch/locales"""
        locales_dir = os.path.join(os.path.dirname(os.path.dirname(__file__)), "locales")

        if not os.path.exists(locales_dir):
            logger.warning(f"Locales directory not found at {locales_dir}")
            return

        for filename in os.listdir(locales_dir):
            if filename.endswith(".json"):
                locale_code = filename[:-5]
                try:
                    with open(os.path.join(locales_dir, filename), "r", encoding="utf-8") as f:
                        self.locales[locale_code] = json.load(f)
                except (OSError, ValueError) as e:
                    logger.error(f"Error loading locale {locale_code}: {e}")

    def _chain(self, locale: Optional[str]) -> List[str]:
        chain = []
        for code in (locale, self.default_locale, FALLBACK_LOCALE):
            if code and code in self.locales and code not in chain:
                chain.append(code)
        return chain

    @staticmethod
    def _lookup(catalogue: Dict[str, Any], key: str) -> Optional[str]:
        value: Any = catalogue
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return None
            value = value[part]
        return value if isinstance(value, str) else None

    def get(self, key: str, locale: Optional[str] = None, **kwargs) -> str:
        """Get translated string by dotted key with optional interpolation"""
        for code in self._chain(locale):
            value = self._lookup(self.locales[code], key)
            if value is None:
                continue
            try:
                return value.format(**kwargs)
            except (KeyError, IndexError):
                return value

        logger.warning(f"Missing message key {key!r} for locale {locale or self.default_locale!r}")
        return key

i18n = I18n()
