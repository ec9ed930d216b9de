"""
Locale catalogs for reports and CLI messages

Catalogs live in ``locales/<code>.json`` as flat key -> template maps.
Lookups fall back to English, then to the key itself, so a missing
translation never breaks rendering. Callers may pick the language per
lookup; the process-wide language is only changed by set_language().
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

LANGUAGES: Dict[str, str] = {
    "en": "English",
    "zh_CN": "简体中文",
}


class LocaleManager:
    """
    Process-wide catalog store (singleton)

    Example:
        >>> manager = LocaleManager()
        >>> manager.translate("report.severity.high", lang="zh_CN")
        '高'
    """

    _instance: Optional["LocaleManager"] = None
    _instance_lock = threading.Lock()

    def __new__(cls):
        with cls._instance_lock:
            if cls._instance is None:
                instance = super().__new__(cls)
                instance._ready = False
                cls._instance = instance
        return cls._instance

    def __init__(self):
        if self._ready:
            return
        self.catalog_dir = Path(__file__).parent / "locales"
        self.current_language = DEFAULT_LANGUAGE
        self.catalogs: Dict[str, Dict[str, str]] = {}
        self._catalog_lock = threading.Lock()
        self._read_catalog(DEFAULT_LANGUAGE)
        self._ready = True

    def _read_catalog(self, code: str) -> bool:
        if code not in LANGUAGES:
            logger.warning(f"Unsupported language: {code}")
            return False

        path = self.catalog_dir / f"{code}.json"
        try:
            with path.open(encoding="utf-8") as handle:
                catalog = json.load(handle)
        except FileNotFoundError:
            logger.warning(f"Locale catalog missing: {path}")
            return False
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Cannot read locale catalog {path}: {e}")
            return False

        with self._catalog_lock:
            self.catalogs[code] = catalog
        logger.debug(f"Loaded {len(catalog)} messages for {code}")
        return True

    def ensure_loaded(self, code: str) -> bool:
        return code in self.catalogs or self._read_catalog(code)

    def set_language(self, code: str) -> bool:
        """Switch the process-wide language; False (unchanged) if unavailable"""
        if not self.ensure_loaded(code):
            return False
        self.current_language = code
        return True

    def get_language(self) -> str:
        return self.current_language

    def translate(self, key: str, lang: Optional[str] = None, **params) -> str:
        """
        Look up ``key`` and fill in ``{name}`` placeholders

        Args:
            key: Message key, e.g. "report.summary.issues"
            lang: Language for this lookup only (default: current language)
            **params: Placeholder values

        Returns:
            The formatted message. An unknown key comes back unchanged; a
            template with a missing placeholder comes back unformatted.
        """
        code = lang or self.current_language
        self.ensure_loaded(code)

        template = self.catalogs.get(code, {}).get(key)
        if template is None and code != DEFAULT_LANGUAGE:
            template = self.catalogs.get(DEFAULT_LANGUAGE, {}).get(key)
        if template is None:
            return key
        if not params:
            return template

        try:
            return template.format(**params)
        except KeyError as e:
            logger.warning(f"Message {key} needs placeholder {e}")
            return template

    def get_available_languages(self) -> Dict[str, str]:
        return dict(LANGUAGES)


def get_locale_manager() -> LocaleManager:
    return LocaleManager()


def set_language(code: str) -> bool:
    return get_locale_manager().set_language(code)


def get_language() -> str:
    return get_locale_manager().get_language()


def t(key: str, lang: Optional[str] = None, **params) -> str:
    """Translate ``key`` (shortcut for LocaleManager().translate)"""
    return get_locale_manager().translate(key, lang=lang, **params)


def get_available_languages() -> Dict[str, str]:
    """Language code -> display name"""
    return get_locale_manager().get_available_languages()
