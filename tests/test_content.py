from datetime import datetime, timezone
from pathlib import Path

import pytest

from bloggo.content import (
    ContentProcessor,
    Document,
    DocumentBuilder,
    FileContentLoader,
    SourceKind,
)
from bloggo.errors import InvalidDocument, IoFailure, MissingFrontMatter


def valid_metadata(**overrides):
    metadata = {
        "title": "A Study in Scarlet",
        "date": datetime(1887, 11, 1, tzinfo=timezone.utc),
        "layout": "post",
    }
    metadata.update(overrides)
    return {k: v for k, v in metadata.items() if v is not None}


def create_content(tmp_path: Path) -> Path:
    posts = tmp_path / "posts"
    (posts / "1891").mkdir(parents=True)
    (posts / "_drafts").mkdir()
    (posts / "1891" / "red-headed-league.md").write_text(
        "---\ntitle: The Red-Headed League\ndate: 1891-08-18\nlayout: post\n---\nText",
        encoding="utf-8",
    )
    (posts / "page.html").write_text(
        "---\ntitle: Raw\ndate: 1891-01-01\nlayout: page\n---\n<b>raw</b>",
        encoding="utf-8",
    )
    (posts / "_drafts" / "unfinished.md").write_text("draft", encoding="utf-8")
    (posts / ".hidden.md").write_text("hidden", encoding="utf-8")
    (posts / "notes.txt").write_text("ignore", encoding="utf-8")
    return posts


def test_builder_produces_authored_document(tmp_path):
    source = tmp_path / "A-Study-In-Scarlet.md"
    doc = DocumentBuilder().build(
        valid_metadata(tags=["Holmes", "Watson", "holmes"], extra="kept"),
        "<p>hi</p>",
        source,
    )
    assert doc.title == "A Study in Scarlet"
    assert doc.slug == "a-study-in-scarlet"
    assert doc.layout == "post"
    assert doc.body_html == "<p>hi</p>"
    assert doc.tags == ("Holmes", "Watson", "holmes")
    assert doc.normalized_tags == ("holmes", "watson")
    assert doc.source_kind is SourceKind.AUTHORED
    assert not doc.is_derived
    assert doc.frontmatter["extra"] == "kept"
    assert doc.label == str(source)


def test_required_fields_checked_in_priority_order():
    with pytest.raises(InvalidDocument) as excinfo:
        DocumentBuilder().build({}, "")
    assert excinfo.value.field == "title"

    with pytest.raises(InvalidDocument) as excinfo:
        DocumentBuilder().build({"title": "T"}, "")
    assert excinfo.value.field == "date"

    with pytest.raises(InvalidDocument) as excinfo:
        DocumentBuilder().build(valid_metadata(layout=None), "")
    assert excinfo.value.field == "layout"
    assert excinfo.value.reason == "missing"


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"title": "   "}, "title"),
        ({"title": ["a"]}, "title"),
        ({"date": "yesterday"}, "date"),
        ({"date": "2024-02-30"}, "date"),
        ({"layout": ""}, "layout"),
        ({"layout": 3}, "layout"),
        ({"tags": {"a": 1}}, "tags"),
        ({"tags": ["ok", None]}, "tags"),
        ({"tags": ["ok", "  "]}, "tags"),
        ({"slug": "!!!"}, "slug"),
    ],
)
def test_invalid_fields(overrides, field):
    with pytest.raises(InvalidDocument) as excinfo:
        DocumentBuilder().build(valid_metadata(**overrides), "", Path("post.md"))
    assert excinfo.value.field == field


def test_dates_are_normalized_to_aware_datetimes():
    doc = DocumentBuilder().build(valid_metadata(date="2023-02-04T15:38:42Z"), "")
    assert doc.date == datetime(2023, 2, 4, 15, 38, 42, tzinfo=timezone.utc)


def test_date_falls_back_to_filename_prefix():
    doc = DocumentBuilder().build(
        valid_metadata(date=None), "", Path("1891-08-18-the-red-headed-league.md")
    )
    assert doc.date == datetime(1891, 8, 18, tzinfo=timezone.utc)
    assert doc.slug == "the-red-headed-league"


def test_slug_sources():
    builder = DocumentBuilder()
    explicit = builder.build(valid_metadata(slug="Mystery"), "", Path("other.md"))
    assert explicit.slug == "mystery"

    from_title = builder.build(valid_metadata(), "", Path("!!!.md"))
    assert from_title.slug == "a-study-in-scarlet"

    no_source = builder.build(valid_metadata(), "")
    assert no_source.slug == "a-study-in-scarlet"


def test_single_string_tag_and_scalar_title():
    doc = DocumentBuilder().build(valid_metadata(title=1984, tags="Orwell"), "")
    assert doc.title == "1984"
    assert doc.tags == ("Orwell",)


def test_loader_skips_hidden_internal_and_unknown_files(tmp_path):
    posts = create_content(tmp_path)
    files = FileContentLoader(posts).iter_files()
    assert [f.relative_to(posts).as_posix() for f in files] == [
        "1891/red-headed-league.md",
        "page.html",
    ]


def test_loader_requires_content_directory(tmp_path):
    with pytest.raises(IoFailure):
        FileContentLoader(tmp_path / "missing").iter_files()


def test_processor_renders_markdown_and_passes_html_through(tmp_path):
    posts = create_content(tmp_path)
    processor = ContentProcessor()

    md = processor.load(posts / "1891" / "red-headed-league.md")
    assert md.body_html == "<p>Text</p>\n"
    assert md.slug == "red-headed-league"
    assert md.date == datetime(1891, 8, 18, tzinfo=timezone.utc)

    html = processor.load(posts / "page.html")
    assert html.body_html == "<b>raw</b>"


def test_processor_reports_source_path(tmp_path):
    bad = tmp_path / "bad.md"
    bad.write_text("no front matter", encoding="utf-8")
    with pytest.raises(MissingFrontMatter) as excinfo:
        ContentProcessor().load(bad)
    assert excinfo.value.source_path == bad

    with pytest.raises(IoFailure):
        ContentProcessor().load(tmp_path / "gone.md")


def test_documents_are_immutable():
    doc = Document(
        title="T", date=datetime(2024, 1, 1, tzinfo=timezone.utc), layout="post", slug="t"
    )
    with pytest.raises(AttributeError):
        doc.title = "changed"
