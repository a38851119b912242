import pytest

from recipemarks.domain.metadata import (
    IMAGE_CANDIDATES,
    TITLE_CANDIDATES,
    MetaMatcher,
    TitleMatcher,
    decode_entities,
    extract_field,
)
from recipemarks.domain.models import FieldKind, MetaField


def page(*head: str) -> str:
    return "<html><head>{}</head><body><p>Stir.</p></body></html>".format("".join(head))


@pytest.mark.parametrize(
    "tag",
    (
        '<meta property="og:image" content="https://example.com/a.jpg">',
        '<meta content="https://example.com/a.jpg" property="og:image">',
        '<META PROPERTY="og:image" CONTENT="https://example.com/a.jpg" />',
        "<meta property='og:image' content='https://example.com/a.jpg'>",
        '<meta name="og:image" content="https://example.com/a.jpg">',
        '<meta\n  data-x="1"\n  property = "og:image"\n  content = "https://example.com/a.jpg"\n>',
    ),
)
def test_meta_matcher_attribute_forms(tag: str) -> None:
    got = MetaMatcher(FieldKind.og_image).match(page(tag))
    assert got == "https://example.com/a.jpg"


def test_meta_matcher_value_is_verbatim_between_quotes() -> None:
    tag = """<meta property="og:title" content="Mum's 'best' stew">"""
    got = MetaMatcher(FieldKind.og_title).match(page(tag))
    assert got == "Mum's 'best' stew"


def test_meta_matcher_skips_empty_content() -> None:
    html = page(
        '<meta property="og:image" content="">',
        '<meta property="og:image" content="https://example.com/second.jpg">',
    )
    assert MetaMatcher(FieldKind.og_image).match(html) == "https://example.com/second.jpg"


def test_meta_matcher_ignores_other_keys() -> None:
    html = page('<meta property="og:image:width" content="1200">')
    assert MetaMatcher(FieldKind.og_image).match(html) is None


def test_og_image_wins_over_twitter_image() -> None:
    html = page(
        '<meta name="twitter:image" content="https://example.com/twitter.jpg">',
        '<meta property="og:image" content="https://example.com/og.jpg">',
    )
    got = extract_field(html, IMAGE_CANDIDATES)
    assert got == MetaField(FieldKind.og_image, "https://example.com/og.jpg")


def test_twitter_image_alone() -> None:
    html = page('<meta name="twitter:image" content="https://example.com/twitter.jpg">')
    got = extract_field(html, IMAGE_CANDIDATES)
    assert got == MetaField(FieldKind.twitter_image, "https://example.com/twitter.jpg")


@pytest.mark.parametrize("key", ("image", "thumbnail", "THUMBNAIL"))
def test_generic_image_keys(key: str) -> None:
    html = page(f'<meta name="{key}" content="/thumb.jpg">')
    got = extract_field(html, IMAGE_CANDIDATES)
    assert got == MetaField(FieldKind.generic_image, "/thumb.jpg")


def test_no_image() -> None:
    html = page('<meta name="description" content="A stew.">', "<title>Stew</title>")
    assert extract_field(html, IMAGE_CANDIDATES) is None


@pytest.mark.parametrize(
    "head,expected",
    (
        (
            (
                "<title>Page title</title>",
                '<meta name="twitter:title" content="Twitter title">',
                '<meta property="og:title" content="OG title">',
            ),
            MetaField(FieldKind.og_title, "OG title"),
        ),
        (
            (
                "<title>Page title</title>",
                '<meta name="twitter:title" content="Twitter title">',
            ),
            MetaField(FieldKind.twitter_title, "Twitter title"),
        ),
        (
            ("<title>\n   Vegan   pizza\n margherita </title>",),
            MetaField(FieldKind.title_tag, "Vegan pizza margherita"),
        ),
        (
            ('<TITLE lang="en">Fish &amp; chips</TITLE>',),
            MetaField(FieldKind.title_tag, "Fish & chips"),
        ),
    ),
)
def test_title_priority(head: tuple[str, ...], expected: MetaField) -> None:
    got = extract_field(page(*head), TITLE_CANDIDATES)
    assert got == expected


@pytest.mark.parametrize(
    "html",
    (
        page("<title></title>"),
        page("<title>   </title>"),
        "<html><head><title>Never closed",
        page(),
    ),
)
def test_title_matcher_misses(html: str) -> None:
    assert TitleMatcher().match(html) is None


def test_first_matching_candidate_stops_the_scan() -> None:
    calls: list[str] = []

    class Spy:
        kind = FieldKind.twitter_title

        def match(self, html: str) -> str | None:
            calls.append(html)
            return None

    html = page('<meta property="og:title" content="OG title">')
    got = extract_field(html, (MetaMatcher(FieldKind.og_title), Spy()))
    assert got == MetaField(FieldKind.og_title, "OG title")
    assert calls == []


@pytest.mark.parametrize(
    "raw,expected",
    (
        (
            "https://example.com/image?param=value&amp;other=test",
            "https://example.com/image?param=value&other=test",
        ),
        ("&lt;b&gt;", "<b>"),
        ("&quot;quoted&quot;", '"quoted"'),
        ("it&#x27;s", "it's"),
        ("a&#x2F;b&#x2f;c", "a/b/c"),
        ("&amp;lt;", "&lt;"),
        ("&#39;&nbsp;&eacute;&#233;", "&#39;&nbsp;&eacute;&#233;"),
        ("no entities", "no entities"),
    ),
)
def test_decode_entities(raw: str, expected: str) -> None:
    assert decode_entities(raw) == expected


def test_content_entities_are_decoded() -> None:
    html = page(
        '<meta property="og:image" '
        'content="https://example.com/image?param=value&amp;other=test">'
    )
    got = extract_field(html, IMAGE_CANDIDATES)
    assert got is not None
    assert got.value == "https://example.com/image?param=value&other=test"


@pytest.mark.parametrize(
    "html",
    (
        "<meta " + "a" * 200_000,
        "<meta " * 50_000,
        '<meta property="og:image" ' * 20_000 + ">",
        "<title>" * 50_000,
        "<meta property=" + '"' * 100_000,
    ),
)
def test_adversarial_markup_is_handled(html: str) -> None:
    assert extract_field(html, IMAGE_CANDIDATES) is None
    assert extract_field(html, TITLE_CANDIDATES) is None
