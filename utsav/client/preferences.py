"""
UI preferences: theme, language and the anonymous voting device id.

No server interaction; everything lives in the persisted store.
"""

from __future__ import annotations

import secrets
from typing import Literal, get_args

from utsav.client.store import LocalStore

Theme = Literal["utsav", "bhakti", "prakriti"]
Language = Literal["telugu", "english"]

THEME_KEY = "festival-theme"
LANGUAGE_KEY = "language"
DEVICE_ID_KEY = "device_id"

DEFAULT_THEME: Theme = "utsav"
DEFAULT_LANGUAGE: Language = "telugu"


class Preferences:
    def __init__(self, store: LocalStore) -> None:
        self.store = store
        theme = store.get(THEME_KEY)
        self.theme: Theme = theme if theme in get_args(Theme) else DEFAULT_THEME
        language = store.get(LANGUAGE_KEY)
        self.language: Language = language if language in get_args(Language) else DEFAULT_LANGUAGE

    def set_theme(self, theme: Theme) -> None:
        if theme not in get_args(Theme):
            raise ValueError(f"Unknown theme: {theme}")
        self.theme = theme
        self.store.set(THEME_KEY, theme)

    def set_language(self, language: Language) -> None:
        if language not in get_args(Language):
            raise ValueError(f"Unknown language: {language}")
        self.language = language
        self.store.set(LANGUAGE_KEY, language)

    def toggle_language(self) -> Language:
        self.set_language("english" if self.language == "telugu" else "telugu")
        return self.language

    def t(self, telugu: str, english: str) -> str:
        """Pick the string for the current language."""
        return telugu if self.language == "telugu" else english

    @property
    def device_id(self) -> str:
        """
        Per-installation voting id, generated on first use.

        Ten digits, shaped like a phone number.
        """
        device_id = self.store.get(DEVICE_ID_KEY)
        if not device_id:
            device_id = str(1_000_000_000 + secrets.randbelow(9_000_000_000))
            self.store.set(DEVICE_ID_KEY, device_id)
        return device_id
