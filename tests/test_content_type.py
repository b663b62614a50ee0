"""Tests for abspublish.content_type — sniffing and extension fallback."""

import pytest

from abspublish.content_type import DEFAULT_CONTENT_TYPE, detect_content_type, guess_from_path

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
GIF = b"GIF89a" + b"\x00" * 16


class TestGuessFromPath:
    """guess_from_path — extension lookup with platform-stable overrides."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("index.html", "text/html"),
            ("app.js", "text/javascript"),
            ("mod.mjs", "text/javascript"),
            ("out.json", "application/json"),
            ("worker.wasm", "application/wasm"),
            ("icon.svg", "image/svg+xml"),
            ("style.css", "text/css"),
            ("actual/shot.PNG", "image/png"),
        ],
    )
    def test_known(self, path: str, expected: str) -> None:
        assert guess_from_path(path) == expected

    def test_unknown(self) -> None:
        assert guess_from_path("LICENSE") is None


class TestDetectContentType:
    """detect_content_type — magic bytes first, then the extension."""

    def test_sniffs_png(self) -> None:
        assert detect_content_type(PNG, "actual/shot.png") == "image/png"

    def test_sniff_beats_extension(self) -> None:
        assert detect_content_type(GIF, "actual/misnamed.png") == "image/gif"

    def test_text_uses_extension(self) -> None:
        assert detect_content_type(b"<!DOCTYPE html><html></html>", "index.html") == "text/html"
        assert detect_content_type(b"{}", "out.json") == "application/json"

    def test_fallback(self) -> None:
        assert detect_content_type(b"plain", "README") == DEFAULT_CONTENT_TYPE
