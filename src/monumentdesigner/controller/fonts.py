"""
Font Resolution
===============
Resolves font identifiers to glyph advance widths and opaque outline handles.

Font descriptors are typeface JSON files (the format produced by facetype.js)
living in `config.FONTS_PATH`. Only the per-glyph advance (`ha`) and the
`resolution` are read here; outlines are handed to the extruder untouched.

Missing fonts fall back to the default font and a non-fatal notice is sent
through the `notify` callback.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Mapping, Optional
import json
import logging
import os
import re

from monumentdesigner.config import (
    CARET_CHAR,
    CARET_WIDTH,
    DEFAULT_CHAR_WIDTH,
    DEFAULT_FONT_ID,
    FONTS_PATH,
)
from monumentdesigner.errors import ResourceLoadError

logger = logging.getLogger(__name__)

# Advance widths in em for fonts without a descriptor
CHAR_WIDTH_TABLE: Dict[str, float] = {
    "i": 0.3, "l": 0.3, "I": 0.4, "1": 0.4, "!": 0.3, ".": 0.2, ",": 0.2,
    "t": 0.4, "f": 0.4, "r": 0.5, "j": 0.3, "m": 0.9, "w": 0.9,
    "M": 1.0, "W": 1.0, " ": 0.4,
    CARET_CHAR: CARET_WIDTH,
}

# Family -> languages it has glyphs for
FONT_FAMILY_LANGUAGES: Dict[str, tuple[str, ...]] = {
    "Arial": ("en", "vi", "it", "hr", "es", "pt"),
    "Arial Unicode MS": ("en", "zh", "vi", "it", "hr", "es", "pt"),
    "Calibri": ("en", "ru", "it", "es", "pt", "hr", "vi", "de", "fr"),
    "Times New Roman": ("en", "ru", "ar", "fa", "it", "es", "pt", "hr", "vi", "de", "fr"),
    "Roman": ("en", "it", "es", "pt", "de", "fr"),
    "Script MT Bold": ("en", "it", "es", "pt", "de", "fr"),
    "Square721 BT": ("en", "it", "es", "pt", "hr", "de", "fr"),
    "Andale Sans UI": ("en", "zh", "ko", "ru", "it", "es", "pt", "hr", "vi", "de", "fr"),
    "微软雅黑": ("en", "zh", "ko", "ru", "it", "es", "pt", "vi", "de", "fr"),
    "黑体": ("en", "zh", "ru"),
    "楷体": ("en", "zh", "ru"),
    "(한)고인돌B": ("ko", "en"),
    "ChosunGs": ("ko", "en"),
    "SWItalc": ("it", "es", "pt", "de"),
}

DEFAULT_FAMILY_FOR_LANGUAGE: Dict[str, str] = {
    "zh": "微软雅黑",
    "en": "Arial",
    "ko": "(한)고인돌B",
}

_HAN = re.compile(r"[一-鿿]")
_HANGUL = re.compile(r"[가-힯]")
_NON_LATIN = re.compile(r"[^A-Za-z0-9 -~]")


def detect_char_language(char: str) -> str:
    """Coarse script detection: 'zh' for Han, 'ko' for Hangul, 'en' otherwise."""
    if _HAN.fullmatch(char):
        return "zh"
    if _HANGUL.fullmatch(char):
        return "ko"
    return "en"


def family_supports(family: str, language: str) -> bool:
    return language in FONT_FAMILY_LANGUAGES.get(family, ())


def resolve_family(selected: str, char: str) -> str:
    """The selected family if it has glyphs for `char`, else the language default."""
    language = detect_char_language(char)
    if family_supports(selected, language):
        return selected
    return DEFAULT_FAMILY_FOR_LANGUAGE.get(language, selected)


def resolve_line_family(selected: str, line: str) -> str:
    """Family for a whole line, decided by its first non-Latin character."""
    match = _NON_LATIN.search(line)
    if match is None:
        return selected
    return resolve_family(selected, match.group(0))


@dataclass(frozen=True)
class FontHandle:
    """Opaque reference passed to the glyph extruder."""
    font_id: str
    path: Optional[str]
    fallback: bool = False


class FontResolver:
    """Per-session font lookups with an instance-owned cache."""

    def __init__(
        self,
        fonts_path: str = FONTS_PATH,
        default_font: str = DEFAULT_FONT_ID,
        notify: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.fonts_path = fonts_path
        self.default_font = default_font
        self.notify = notify
        self._advances: Dict[str, Dict[str, float]] = {}

    def font_path(self, font_id: str) -> str:
        if font_id.endswith(".json") or os.path.isabs(font_id):
            return font_id
        return os.path.join(self.fonts_path, f"{font_id}.json")

    def _load_advances(self, font_id: str) -> Dict[str, float]:
        path = self.font_path(font_id)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ResourceLoadError(font_id, str(e)) from e

        resolution = float(data.get("resolution", 1000) or 1000)
        glyphs = data.get("glyphs", {})
        advances = {
            char: float(glyph["ha"]) / resolution
            for char, glyph in glyphs.items()
            if isinstance(glyph, dict) and "ha" in glyph
        }
        logger.debug(f"Loaded {len(advances)} glyph advances from '{path}'.")
        return advances

    def _advances_for(self, font_id: str) -> Dict[str, float]:
        if font_id in self._advances:
            return self._advances[font_id]
        try:
            advances = self._load_advances(font_id)
        except ResourceLoadError as e:
            if font_id != self.default_font:
                self._report(f"{e} Using the default font instead.")
                advances = self._advances_for(self.default_font)
            else:
                logger.debug(f"Default font unavailable ({e.reason}), using the built-in width table.")
                advances = {}
        self._advances[font_id] = advances
        return advances

    def resolve_glyph_widths(self, font_id: str, characters: Iterable[str]) -> Dict[str, float]:
        """
        Advance width in em for each distinct character.

        Characters unknown to the font descriptor use `CHAR_WIDTH_TABLE`, then
        `DEFAULT_CHAR_WIDTH`.
        """
        advances = self._advances_for(font_id)
        widths: Dict[str, float] = {}
        for char in characters:
            if char in widths:
                continue
            if char == CARET_CHAR:
                widths[char] = CARET_WIDTH
            elif char in advances:
                widths[char] = advances[char]
            else:
                widths[char] = CHAR_WIDTH_TABLE.get(char, DEFAULT_CHAR_WIDTH)
        return widths

    def resolve_outline(self, font_id: str) -> FontHandle:
        path = self.font_path(font_id)
        if os.path.exists(path):
            return FontHandle(font_id=font_id, path=path)
        if font_id != self.default_font:
            self._report(f"Font '{font_id}' not found. Using the default font instead.")
        default_path = self.font_path(self.default_font)
        return FontHandle(
            font_id=self.default_font,
            path=default_path if os.path.exists(default_path) else None,
            fallback=True,
        )

    def _report(self, message: str) -> None:
        # The notice sink logs it; only log here when nobody listens
        if self.notify is None:
            logger.warning(message)
            return
        self.notify(message)


def char_advance(char: str, widths: Optional[Mapping[str, float]] = None) -> float:
    """Advance in em, from `widths` when given, else the built-in table."""
    if widths is not None and char in widths:
        return widths[char]
    return CHAR_WIDTH_TABLE.get(char, DEFAULT_CHAR_WIDTH)
