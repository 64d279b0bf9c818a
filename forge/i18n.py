"""Translation lookup for Forge templates.

Translations live in ``i18n/<lang>.yaml`` as flat key/value maps. Files that
cannot be read or parsed are skipped with a warning.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

TRANSLATIONS_DIR = "i18n"
_VARIABLE_RE = re.compile(r"%\{(\w+)\}")


class Translator:
    """Loads translation tables and resolves keys.

    Attributes:
        translations_dir: Directory holding ``<lang>.yaml`` files.
        default_lang: Language used when a lookup names none.
        translations: Language code -> (key -> text).
    """

    def __init__(self, site_dir: Path, default_lang: str = "en"):
        self.translations_dir = site_dir / TRANSLATIONS_DIR
        self.default_lang = default_lang
        self.translations: dict[str, dict[str, str]] = {}

    def load_all(self) -> dict[str, dict[str, str]]:
        """Load every translation file.

        Returns:
            Mapping of language code to its translation table.
        """
        tables: dict[str, dict[str, str]] = {}
        if not self.translations_dir.is_dir():
            self.translations = tables
            return tables
        for path in sorted(self.translations_dir.iterdir()):
            if path.suffix not in (".yaml", ".yml") or not path.is_file():
                continue
            try:
                payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            except (OSError, yaml.YAMLError) as exc:
                logger.warning("Skipping translation file %s: %s", path, exc)
                continue
            if not isinstance(payload, dict):
                logger.warning("Skipping translation file %s: not a mapping", path)
                continue
            tables[path.stem] = {str(k): str(v) for k, v in payload.items()}
        self.translations = tables
        return tables

    def translate(self, key: str, lang: str | None = None, **variables: Any) -> str:
        """Translate ``key``, substituting ``%{name}`` placeholders.

        Unknown keys and languages fall back to the key itself.
        """
        table = self.translations.get(lang or self.default_lang, {})
        text = table.get(key, key)
        if not variables:
            return text
        return _VARIABLE_RE.sub(
            lambda m: str(variables[m.group(1)]) if m.group(1) in variables else m.group(0),
            text,
        )
