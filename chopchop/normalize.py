"""Cleanup of raw OCR output before it is sent for extraction."""

from __future__ import annotations

import re
import unicodedata

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")
_SPACE_RE = re.compile(r"[ \t]+")


def normalize_receipt_text(raw: str) -> str:
    """Strip OCR noise and whitespace artifacts.

    Lines that carry no letter or digit (rules, smudges, stray bars) are
    dropped. Returns an empty string when nothing usable is left.
    """
    if not raw:
        return ""

    text = unicodedata.normalize("NFKC", raw)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _CONTROL_RE.sub("", text)

    lines: list[str] = []
    for line in text.split("\n"):
        line = _SPACE_RE.sub(" ", line).strip()
        if not line:
            continue
        if not any(ch.isalnum() for ch in line):
            continue
        lines.append(line)
    return "\n".join(lines)
