import json
import logging

import pytest

from monumentdesigner.config import FONTS_PATH
from monumentdesigner.controller.fonts import (
    FontResolver,
    char_advance,
    detect_char_language,
    resolve_family,
    resolve_line_family,
)


def _write_font(directory, name, glyphs, resolution=1000):
    data = {"resolution": resolution, "glyphs": {ch: {"ha": ha, "o": ""} for ch, ha in glyphs.items()}}
    (directory / f"{name}.json").write_text(json.dumps(data), encoding="utf-8")


def test_widths_come_from_the_descriptor(tmp_path):
    _write_font(tmp_path, "serif", {"A": 600, "B": 500}, resolution=1000)
    resolver = FontResolver(fonts_path=str(tmp_path), default_font="serif")

    widths = resolver.resolve_glyph_widths("serif", "AAB|Q")

    assert widths == pytest.approx({"A": 0.6, "B": 0.5, "|": 0.05, "Q": 0.7})


def test_missing_font_falls_back_with_notice(tmp_path):
    _write_font(tmp_path, "default", {"A": 400})
    notices = []
    resolver = FontResolver(fonts_path=str(tmp_path), default_font="default", notify=notices.append)

    widths = resolver.resolve_glyph_widths("does-not-exist", "A")

    assert widths["A"] == pytest.approx(0.4)
    assert len(notices) == 1
    assert "does-not-exist" in notices[0]


def test_fallback_is_cached_per_resolver(tmp_path):
    _write_font(tmp_path, "default", {"A": 400})
    notices = []
    resolver = FontResolver(fonts_path=str(tmp_path), default_font="default", notify=notices.append)

    resolver.resolve_glyph_widths("nope", "A")
    resolver.resolve_glyph_widths("nope", "A")

    assert len(notices) == 1
    assert FontResolver(fonts_path=str(tmp_path), default_font="default")._advances == {}


def test_without_any_descriptor_the_width_table_is_used(tmp_path):
    resolver = FontResolver(fonts_path=str(tmp_path), default_font="default")
    widths = resolver.resolve_glyph_widths("default", "iM")
    assert widths == {"i": 0.3, "M": 1.0}


def test_broken_descriptor_is_a_resource_failure(tmp_path):
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    _write_font(tmp_path, "default", {"A": 400})
    notices = []
    resolver = FontResolver(fonts_path=str(tmp_path), default_font="default", notify=notices.append)

    assert resolver.resolve_glyph_widths("broken", "A")["A"] == pytest.approx(0.4)
    assert notices


def test_resolve_outline(tmp_path):
    _write_font(tmp_path, "default", {"A": 400})
    notices = []
    resolver = FontResolver(fonts_path=str(tmp_path), default_font="default", notify=notices.append)

    handle = resolver.resolve_outline("default")
    assert handle.path == str(tmp_path / "default.json")
    assert not handle.fallback

    fallback = resolver.resolve_outline("gone")
    assert fallback.fallback
    assert fallback.font_id == "default"
    assert len(notices) == 1


def test_bundled_default_font_has_advances():
    resolver = FontResolver(fonts_path=FONTS_PATH)
    widths = resolver.resolve_glyph_widths(resolver.default_font, "Hi")
    assert widths["H"] == pytest.approx(0.722)
    assert widths["i"] == pytest.approx(0.222)


def test_language_detection_and_family_fallback():
    assert detect_char_language("中") == "zh"
    assert detect_char_language("한") == "ko"
    assert detect_char_language("a") == "en"

    assert resolve_family("Arial", "a") == "Arial"
    assert resolve_family("Arial", "中") == "微软雅黑"
    assert resolve_family("Arial Unicode MS", "中") == "Arial Unicode MS"
    assert resolve_family("Arial", "한") == "(한)고인돌B"


def test_line_family_uses_first_non_latin_character():
    assert resolve_line_family("Arial", "Hello") == "Arial"
    assert resolve_line_family("Arial", "Kim 김") == "(한)고인돌B"


def test_char_advance_prefers_given_widths():
    assert char_advance("A", {"A": 0.25}) == 0.25
    assert char_advance("m") == 0.9


def test_fallback_is_logged_once_through_the_store(tmp_path, store, caplog):
    _write_font(tmp_path, "default", {"A": 400})
    resolver = FontResolver(fonts_path=str(tmp_path), default_font="default", notify=store.post_notice)

    with caplog.at_level(logging.WARNING, logger="monumentdesigner"):
        resolver.resolve_glyph_widths("gone", "A")

    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert warnings[0].name == "monumentdesigner.app.state"


def test_fallback_without_listener_is_logged(tmp_path, caplog):
    _write_font(tmp_path, "default", {"A": 400})
    resolver = FontResolver(fonts_path=str(tmp_path), default_font="default")

    with caplog.at_level(logging.WARNING, logger="monumentdesigner"):
        resolver.resolve_outline("gone")

    assert [r.name for r in caplog.records] == ["monumentdesigner.controller.fonts"]
