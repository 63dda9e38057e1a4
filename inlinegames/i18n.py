from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path


logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


# Endonyms for the language toggle label; unknown tags fall back to the tag itself.
DISPLAY_NAMES: dict[str, str] = {
    "en": "english",
    "pl": "polski",
    "de": "deutsch",
    "es": "español",
    "fr": "français",
    "it": "italiano",
    "pt": "português",
    "ru": "русский",
    "uk": "українська",
    "nl": "nederlands",
    "tr": "türkçe",
}


class LocaleCatalog:
    """Locale list plus message lookup.

    Messages are keyed by their English text (the msgid). Missing translations
    fall back to the msgid, so the default locale needs no catalog of its own.
    Placeholders look like `{PLAYER_HOST}` and are filled from keyword arguments.
    """

    def __init__(
        self,
        translations: Mapping[str, Mapping[str, str]] | None = None,
        *,
        default_locale: str = "en",
        display_names: Mapping[str, str] | None = None,
    ) -> None:
        self._default = default_locale
        self._translations: dict[str, dict[str, str]] = {default_locale: {}}
        for locale, messages in (translations or {}).items():
            self._translations.setdefault(locale, {}).update(messages)
        self._display_names = dict(DISPLAY_NAMES)
        if display_names:
            self._display_names.update(display_names)

    @classmethod
    def from_directory(cls, path: Path, *, default_locale: str = "en") -> LocaleCatalog:
        """Load `<locale>.json` files (flat msgid -> text objects) from a directory."""

        translations: dict[str, dict[str, str]] = {}
        for file in sorted(path.glob("*.json")):
            data = json.loads(file.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError(f"Locale file {file.name} must contain a JSON object")
            translations[file.stem] = {str(k): str(v) for k, v in data.items()}
        logger.debug("Loaded %d locale catalog(s) from %s", len(translations), path)
        return cls(translations, default_locale=default_locale)

    def default_locale(self) -> str:
        return self._default

    def list_locales(self) -> list[str]:
        # Default first, the rest in load order.
        return list(self._translations.keys())

    def display_name(self, locale: str) -> str:
        return self._display_names.get(locale, locale)

    def gettext(self, locale: str, msgid: str, **params: str) -> str:
        text = self._translations.get(locale, {}).get(msgid, msgid)
        if not params:
            return text
        # Single pass, so substituted values are never scanned for placeholders again.
        return _PLACEHOLDER.sub(lambda m: params.get(m.group(1), m.group(0)), text)

    def next_locale(self, current: str) -> str:
        """The locale after `current`, wrapping around; unknown => the first one."""

        locales = self.list_locales()
        if current not in locales:
            return locales[0]
        return locales[(locales.index(current) + 1) % len(locales)]


@dataclass(frozen=True, slots=True)
class Translator:
    """A catalog bound to one locale for the duration of a single action."""

    catalog: LocaleCatalog
    locale: str

    def __call__(self, msgid: str, **params: str) -> str:
        return self.catalog.gettext(self.locale, msgid, **params)
