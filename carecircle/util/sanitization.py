"""Sanitisation helpers for free-form text.

Log notes are shown back to friends and to the owner in a web client,
so HTML tags are stripped before storing them and the result is
trimmed to the column width.
"""
from __future__ import annotations

import re

TAG_RE = re.compile(r"<[^>]+>")
WHITESPACE_RE = re.compile(r"[ \t]+")


def clean_text(text: str | None, max_length: int | None = None) -> str:
    """Strip HTML tags, collapse runs of spaces and trim ``text``.

    ``None`` and empty input both yield an empty string. When
    ``max_length`` is given the cleaned text is cut to that many
    characters.
    """
    if not text:
        return ""
    cleaned = WHITESPACE_RE.sub(" ", TAG_RE.sub("", text)).strip()
    if max_length is not None:
        cleaned = cleaned[:max_length].rstrip()
    return cleaned
