"""Permissive scanner for the form-template markup dialect.

The dialect looks like XML but is not well formed: placeholder markers such as
``{?External(KEY)?}`` sit inside attribute values and element bodies, and the
documents are never validated. Everything here is regex based and total over
arbitrary strings: unterminated elements are skipped, nothing raises.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from functools import lru_cache

MARKER_RE = re.compile(r"\{\?(External|Editor)\(((?:(?!\{\?|\)\?\}).)*)\)\?\}")
_MARKER_OPEN_RE = re.compile(r"\{\?(?:External|Editor)\(")

# Quoted values may contain ">" (regex hints do).
_ATTRS = r'(?:[^>"]|"[^"]*")*'


@dataclass(frozen=True)
class Element:
    """One top-level element found by ``iter_elements``."""

    tag: str
    attrs: str
    body: str
    self_closing: bool
    start: int
    end: int


def has_marker(text: str) -> bool:
    """Return True when text contains an External/Editor marker opening."""

    return _MARKER_OPEN_RE.search(text) is not None


def first_marker_key(text: str) -> str | None:
    """Return the alias key of the first marker in text, if any."""

    match = MARKER_RE.search(text)
    if match is None or not match.group(2):
        return None
    return match.group(2)


def find_marker_keys(text: str) -> list[str]:
    """Return alias keys of every marker in source order."""

    return [match.group(2) for match in MARKER_RE.finditer(text)]


def read_attr(attrs: str, name: str) -> str | None:
    """Read ``name="value"`` from an attribute string.

    The first match wins. Empty values are treated as absent.
    """

    match = _attr_pattern(name).search(attrs)
    if match is None or not match.group(1):
        return None
    return match.group(1)


def iter_elements(text: str, tags: Iterable[str]) -> Iterator[Element]:
    """Yield top-level elements with one of ``tags`` in source order.

    Same-named nested elements are kept inside their parent body by counting
    depth of the outer tag. Elements of other tags are plain body text.
    """

    pattern = _tag_pattern(tuple(tags))
    cursor = 0
    while True:
        match = pattern.search(text, cursor)
        if match is None:
            return

        is_close, tag, attrs = match.group(1), match.group(2), match.group(3)
        if is_close:
            cursor = match.end()
            continue

        stripped = attrs.rstrip()
        if stripped.endswith("/"):
            yield Element(
                tag=tag,
                attrs=stripped[:-1],
                body="",
                self_closing=True,
                start=match.start(),
                end=match.end(),
            )
            cursor = match.end()
            continue

        close = _find_close(text, tag, match.end())
        if close is None:
            cursor = match.end()
            continue

        yield Element(
            tag=tag,
            attrs=attrs,
            body=text[match.end() : close.start()],
            self_closing=False,
            start=match.start(),
            end=close.end(),
        )
        cursor = close.end()


def _find_close(text: str, tag: str, position: int) -> re.Match[str] | None:
    depth = 1
    for match in _tag_pattern((tag,)).finditer(text, position):
        if match.group(1):
            depth -= 1
            if depth == 0:
                return match
        elif not match.group(3).rstrip().endswith("/"):
            depth += 1
    return None


@lru_cache(maxsize=32)
def _tag_pattern(tags: tuple[str, ...]) -> re.Pattern[str]:
    names = "|".join(re.escape(tag) for tag in tags)
    return re.compile(rf"<(/?)({names})\b({_ATTRS})>")


@lru_cache(maxsize=64)
def _attr_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf'(?<![\w:.-]){re.escape(name)}="([^"]*)"')
