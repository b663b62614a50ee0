"""Tests for abspublish.sas.patcher — bootstrap injection into the entry page."""

from __future__ import annotations

import pytest

from abspublish._errors import PatchError
from abspublish.sas.patcher import MARKER, is_patched, patch_entry_page, script_block

SOURCE = "console.log('sas');"


class TestScriptBlock:
    """script_block — marked <script> element around the source."""

    def test_wraps_source(self) -> None:
        block = script_block(SOURCE)
        assert block.startswith(b"\n<script " + MARKER + b">\n")
        assert block.endswith(b"\n</script>\n")
        assert SOURCE.encode() in block

    def test_utf8(self) -> None:
        assert "é".encode() in script_block("// é")


class TestPatchEntryPage:
    """patch_entry_page — insert immediately after the first <body> tag."""

    def test_length_grows_by_block(self) -> None:
        html = b"<html><body><p>hi</p></body></html>"
        patched = patch_entry_page(html, SOURCE)
        assert len(patched) == len(html) + len(script_block(SOURCE))

    def test_inserted_after_body(self) -> None:
        html = b"<html><body><p>hi</p></body></html>"
        patched = patch_entry_page(html, SOURCE)
        assert patched == b"<html><body>" + script_block(SOURCE) + b"<p>hi</p></body></html>"

    def test_body_attributes(self) -> None:
        html = b'<html><body class="report" data-x="1"><main></main></body></html>'
        patched = patch_entry_page(html, SOURCE)
        prefix = b'<html><body class="report" data-x="1">'
        assert patched.startswith(prefix + script_block(SOURCE))

    def test_surrounding_bytes_preserved(self) -> None:
        head = b"<!DOCTYPE html>\r\n<html>\r\n<head><meta charset=\"utf-8\"></head>\r\n<body>"
        tail = b"\r\n<div>\xe2\x9c\x93</div>\r\n</body>\r\n</html>\r\n"
        patched = patch_entry_page(head + tail, SOURCE)
        assert patched[: len(head)] == head
        assert patched[-len(tail):] == tail

    def test_first_body_only(self) -> None:
        html = b"<body><template><body></body></template></body>"
        patched = patch_entry_page(html, SOURCE)
        assert patched.count(MARKER) == 1
        assert patched.index(MARKER) < patched.index(b"<template>")

    def test_similar_tag_not_matched(self) -> None:
        html = b"<html><bodyguard></bodyguard><body></body></html>"
        patched = patch_entry_page(html, SOURCE)
        assert patched.index(MARKER) > patched.index(b"<body>")

    def test_missing_body(self) -> None:
        with pytest.raises(PatchError, match="Malformed"):
            patch_entry_page(b"<html><head></head></html>", SOURCE)

    def test_uppercase_body_not_matched(self) -> None:
        with pytest.raises(PatchError):
            patch_entry_page(b"<HTML><BODY></BODY></HTML>", SOURCE)

    def test_not_idempotent(self) -> None:
        html = b"<body></body>"
        twice = patch_entry_page(patch_entry_page(html, SOURCE), SOURCE)
        assert twice.count(MARKER) == 2


class TestIsPatched:
    """is_patched — marker detection."""

    def test_unpatched(self) -> None:
        assert not is_patched(b"<html><body></body></html>")

    def test_patched(self) -> None:
        assert is_patched(patch_entry_page(b"<body></body>", SOURCE))

    def test_marker_text_alone_is_not_a_block(self) -> None:
        assert not is_patched(b"<body><p>data-abspublish-sas</p></body>")
