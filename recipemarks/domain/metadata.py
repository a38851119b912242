"""Targeted meta tag matching over a bounded HTML string.

No markup tree is built. Each matcher scans the document on its own and every
pattern stops at the next ``<``, so a single match attempt never spans more
than one tag.
"""

import re
from typing import Iterable, Iterator, Protocol

from recipemarks.domain.models import FieldKind, MetaField


META_TAG = re.compile(r"<meta\b[^<>]*>", re.IGNORECASE)
ATTRIBUTE = re.compile(
    r"""(?<![-\w:.])([a-z_:][-\w:.]*)\s*=\s*(?:"([^"]*)"|'([^']*)')""",
    re.IGNORECASE,
)
TITLE_TAG = re.compile(r"<title\b[^<>]*>([^<]*)</title\s*>", re.IGNORECASE)
ENTITY = re.compile(r"&(amp|lt|gt|quot|#x27|#x2F);", re.IGNORECASE)
WHITESPACE = re.compile(r"\s+")

ENTITIES = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "#x27": "'",
    "#x2f": "/",
}


def decode_entities(value: str) -> str:
    """Decode the handful of entities that show up in URLs and titles.

    Single pass, so ``&amp;lt;`` becomes ``&lt;`` and nothing else is touched.
    """
    return ENTITY.sub(lambda m: ENTITIES[m.group(1).lower()], value)


def attributes(tag: str) -> Iterator[tuple[str, str]]:
    for m in ATTRIBUTE.finditer(tag):
        value = m.group(2) if m.group(2) is not None else m.group(3)
        yield m.group(1).lower(), value


class Matcher(Protocol):
    kind: FieldKind

    def match(self, html: str) -> str | None:
        ...


class MetaMatcher:
    """``<meta property|name="key" content="...">`` in either attribute order."""

    def __init__(self, kind: FieldKind, *keys: str) -> None:
        self.kind = kind
        self.keys = frozenset(k.lower() for k in (keys or (kind.value,)))

    def __repr__(self) -> str:
        return f"<MetaMatcher({self.kind.name})>"

    def match(self, html: str) -> str | None:
        for tag in META_TAG.finditer(html):
            attrs = dict(attributes(tag.group(0)))
            names = {attrs.get(a, "").strip().lower() for a in ("property", "name")}
            if not names & self.keys:
                continue
            content = decode_entities(attrs.get("content", "")).strip()
            if content:
                return content
        return None


class TitleMatcher:
    kind = FieldKind.title_tag

    def __repr__(self) -> str:
        return "<TitleMatcher>"

    def match(self, html: str) -> str | None:
        m = TITLE_TAG.search(html)
        if m is None:
            return None
        text = WHITESPACE.sub(" ", decode_entities(m.group(1))).strip()
        return text or None


IMAGE_CANDIDATES: tuple[Matcher, ...] = (
    MetaMatcher(FieldKind.og_image),
    MetaMatcher(FieldKind.twitter_image),
    MetaMatcher(FieldKind.generic_image, "image", "thumbnail"),
)


TITLE_CANDIDATES: tuple[Matcher, ...] = (
    MetaMatcher(FieldKind.og_title),
    MetaMatcher(FieldKind.twitter_title),
    TitleMatcher(),
)


def extract_field(html: str, candidates: Iterable[Matcher]) -> MetaField | None:
    """First candidate, in the given priority order, that matches anywhere."""
    for candidate in candidates:
        value = candidate.match(html)
        if value is not None:
            return MetaField(candidate.kind, value)
    return None
