from datetime import datetime, timezone

import pytest

from bloggo.collections import SiteAggregator
from bloggo.content import Document
from bloggo.errors import BuildError, RenderFailure, UnknownLayout
from bloggo.templates import (
    LayoutResolver,
    TemplateRegistry,
    format_datetime,
    layout_name,
)


def make_doc(layout="post", **kwargs):
    values = dict(
        title="The Final Problem",
        date=datetime(1893, 12, 1, 18, 30, tzinfo=timezone.utc),
        layout=layout,
        slug="the-final-problem",
        body_html="<p>Moriarty</p>",
        tags=("Holmes",),
        url="/the-final-problem/",
    )
    values.update(kwargs)
    return Document(**values)


def create_templates(tmp_path):
    templates = tmp_path / "templates"
    (templates / "_partials").mkdir(parents=True)
    (templates / "_partials" / "base.html.jinja").write_text(
        "<title>{% block title %}{% endblock %}</title>{% block main %}{% endblock %}",
        encoding="utf-8",
    )
    (templates / "post.html.jinja").write_text(
        '{% extends "_partials/base.html.jinja" %}'
        "{% block title %}{{ page.title }}{% endblock %}"
        "{% block main %}{{ page_content }}{{ url_for('atom.xml') }}{% endblock %}",
        encoding="utf-8",
    )
    (templates / "post.html").write_text("shadowed", encoding="utf-8")
    (templates / "index.html").write_text(
        "{% for p in pages %}{{ p.title }};{% endfor %}", encoding="utf-8"
    )
    (templates / "tag.jinja").write_text("{{ page.title }}", encoding="utf-8")
    (templates / "readme.txt").write_text("not a layout", encoding="utf-8")
    return templates


def test_layout_name():
    assert layout_name("post.html.jinja") == "post"
    assert layout_name("tag.jinja") == "tag"
    assert layout_name("index.html") == "index"
    assert layout_name("blog/post.html") == "blog/post"
    assert layout_name("_partials/base.html.jinja") is None
    assert layout_name("notes.txt") is None


def test_registry_from_directory(tmp_path):
    templates = create_templates(tmp_path)
    registry = TemplateRegistry.from_directory(templates, base_url="https://example.com")
    assert list(registry) == ["index", "post", "tag"]
    assert len(registry) == 3

    doc = make_doc()
    site = SiteAggregator().aggregate([doc])
    html = LayoutResolver(registry).render(doc, site)
    assert html == (
        "<title>The Final Problem</title><p>Moriarty</p>https://example.com/atom.xml"
    )


def test_missing_templates_directory(tmp_path):
    with pytest.raises(BuildError):
        TemplateRegistry.from_directory(tmp_path / "missing")


def test_context_exposes_site():
    registry = TemplateRegistry.from_mapping(
        {
            "post": (
                "{{ site.title }}|{{ pages | length }}|{{ tags | list | join(',') }}|"
                "{{ data.author }}|{{ page.date | format_datetime('%Y-%m-%d') }}"
            )
        }
    )
    doc = make_doc()
    site = SiteAggregator(title="Journal", data={"author": "Watson"}).aggregate([doc])
    html = LayoutResolver(registry).render(doc, site)
    assert html == "Journal|1|holmes|Watson|1893-12-01"


def test_autoescape_applies_to_fields_but_not_body():
    registry = TemplateRegistry.from_mapping({"post": "{{ page.title }}{{ page_content }}"})
    doc = make_doc(title="<b>Bold</b>", body_html="<em>ok</em>")
    html = LayoutResolver(registry).render(doc, SiteAggregator().aggregate([doc]))
    assert html == "&lt;b&gt;Bold&lt;/b&gt;<em>ok</em>"


def test_unknown_layout():
    resolver = LayoutResolver(TemplateRegistry.from_mapping({"page": "x"}))
    doc = make_doc(layout="post")
    with pytest.raises(UnknownLayout) as excinfo:
        resolver.resolve(doc)
    assert excinfo.value.name == "post"

    with pytest.raises(UnknownLayout):
        resolver.check([doc])

    with pytest.raises(UnknownLayout):
        resolver.render(doc, SiteAggregator().aggregate([]))


def test_template_errors_become_render_failures():
    registry = TemplateRegistry.from_mapping(
        {"broken": "{% if %}", "raises": "{{ page.date | format_datetime }}{{ 1 // 0 }}"}
    )
    resolver = LayoutResolver(registry)
    site = SiteAggregator().aggregate([])

    with pytest.raises(RenderFailure) as excinfo:
        resolver.render(make_doc(layout="broken"), site)
    assert excinfo.value.slug == "the-final-problem"
    assert "Template syntax error" in excinfo.value.message

    with pytest.raises(RenderFailure) as excinfo:
        resolver.render(make_doc(layout="raises"), site)
    assert isinstance(excinfo.value.cause, ZeroDivisionError)


def test_register_callables_and_reject_duplicates():
    registry = TemplateRegistry()
    registry.register("post", lambda doc, site: f"<h1>{doc.title}</h1>")
    doc = make_doc()
    html = LayoutResolver(registry).render(doc, SiteAggregator().aggregate([doc]))
    assert html == "<h1>The Final Problem</h1>"

    with pytest.raises(ValueError):
        registry.register("post", lambda doc, site: "")


def test_url_for():
    registry = TemplateRegistry()
    assert registry.url_for("css/site.css") == "/css/site.css"
    assert registry.url_for("http://cdn.com/lib.js") == "http://cdn.com/lib.js"
    prefixed = TemplateRegistry(base_url="https://root.com/")
    assert prefixed.url_for("/posts/") == "https://root.com/posts/"


def test_format_datetime():
    value = datetime(2023, 2, 4, 15, 38, 42, tzinfo=timezone.utc)
    assert format_datetime(value, "%A, %B %d, %Y") == "Saturday, February 04, 2023"
    assert format_datetime("2023-02-04T15:38:42Z", "%H:%M") == "15:38"
    with pytest.raises(ValueError):
        format_datetime("soon")
