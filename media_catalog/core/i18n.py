"""Localized user-facing messages.

Error responses carry a short, non-technical message in the caller's
language, picked from the Accept-Language header.
"""

from typing import Dict, List, Optional

DEFAULT_LOCALE = "en"

MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "INVALID_INPUT": "The URL is missing or invalid.",
        "UNSUPPORTED_SOURCE": "This URL is not supported.",
        "RESTRICTED_SOURCE": "This video is private or unavailable.",
        "ENGINE_INIT_FAILED": "The analyzer could not be started. Please try again later.",
        "EXTRACTION_TIMEOUT": "Analyzing the video took too long. Please try again.",
        "MALFORMED_ENGINE_OUTPUT": "Failed to analyze the video.",
        "EXTRACTION_FAILED": "Failed to analyze the video.",
        "METHOD_NOT_ALLOWED": "Method not allowed.",
        "NOT_FOUND": "Not found.",
        "INTERNAL_ERROR": "An unknown server error occurred.",
    },
    "ja": {
        "INVALID_INPUT": "無効なURLです。",
        "UNSUPPORTED_SOURCE": "このURLには対応していません。",
        "RESTRICTED_SOURCE": "この動画は非公開か、利用できません。",
        "ENGINE_INIT_FAILED": "解析エンジンを起動できませんでした。しばらくしてから再度お試しください。",
        "EXTRACTION_TIMEOUT": "動画の解析に時間がかかりすぎました。再度お試しください。",
        "MALFORMED_ENGINE_OUTPUT": "動画情報の解析に失敗しました。",
        "EXTRACTION_FAILED": "動画情報の解析に失敗しました。",
        "METHOD_NOT_ALLOWED": "許可されていないメソッドです。",
        "NOT_FOUND": "見つかりません。",
        "INTERNAL_ERROR": "サーバーで不明なエラーが発生しました。",
    },
}


class I18n:
    """Simple message catalog with fallback to the default locale."""

    def __init__(
        self,
        default_locale: str = DEFAULT_LOCALE,
        supported_locales: Optional[List[str]] = None,
    ):
        self.default_locale = default_locale
        self.supported_locales = supported_locales or list(MESSAGES)

    def get(self, key: str, locale: Optional[str] = None) -> str:
        """Get the message for key, falling back to the default locale, then the key."""
        locale = locale or self.default_locale
        message = MESSAGES.get(locale, {}).get(key)
        if message is None:
            message = MESSAGES.get(self.default_locale, {}).get(key, key)
        return message

    def get_locale(self, accept_language: Optional[str] = None) -> str:
        """Pick the first supported locale from an Accept-Language header."""
        if not accept_language:
            return self.default_locale

        for lang in accept_language.split(","):
            locale = lang.strip().split(";")[0].split("-")[0].lower()
            if locale in self.supported_locales:
                return locale

        return self.default_locale


i18n = I18n()


def configure_i18n(default_locale: str, supported_locales: List[str]) -> I18n:
    """Replace the module-level catalog settings (called at startup)."""
    i18n.default_locale = default_locale
    i18n.supported_locales = supported_locales
    return i18n
