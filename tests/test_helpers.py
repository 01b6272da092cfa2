import hashlib

from shared.helper.HelperFrontmatter import split_frontmatter, strip_frontmatter
from shared.helper.HelperHash import hash_content


def test_hash_content_is_sha256_of_utf8():
    text = "Kaffee ☕ und Notizen"
    assert hash_content(text) == hashlib.sha256(text.encode("utf-8")).hexdigest()
    assert len(hash_content("")) == 64


def test_hash_content_changes_with_content():
    assert hash_content("a") != hash_content("a ")
    assert hash_content("same") == hash_content("same")


def test_split_frontmatter_parses_scalars_and_lists():
    content = (
        "---\n"
        "title: \"Morning Routine\"\n"
        "tags: [habits, 'health']\n"
        "aliases:\n"
        "  - routine\n"
        "  - morning\n"
        "summary: How I start the day\n"
        "---\n"
        "# Body\n"
    )
    metadata, body = split_frontmatter(content)
    assert metadata == {
        "title": "Morning Routine",
        "tags": ["habits", "health"],
        "aliases": ["routine", "morning"],
        "summary": "How I start the day",
    }
    assert body == "# Body\n"


def test_split_frontmatter_without_header_returns_content():
    content = "# Just a note\n\n---\nnot: frontmatter\n---\n"
    assert split_frontmatter(content) == (None, content)


def test_malformed_frontmatter_is_stripped_but_yields_no_metadata():
    content = "---\ntitle: ok\nthis line is not yaml\n---\nBody text"
    metadata, body = split_frontmatter(content)
    assert metadata is None
    assert body == "Body text"


def test_empty_frontmatter_block():
    metadata, body = split_frontmatter("---\n---\nBody")
    assert metadata == {}
    assert body == "Body"


def test_strip_frontmatter_handles_header_only_note():
    assert strip_frontmatter("---\ntitle: Test\ntags: [test]\n---\n") == ""
