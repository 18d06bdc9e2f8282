from click.testing import CliRunner

from bloggo import __version__
from bloggo.cli import cli

POST = "---\ntitle: The Blue Carbuncle\ndate: 1892-01-01\nlayout: post\ntags: [Holmes]\n---\nA goose.\n"


def make_project(root):
    (root / "templates").mkdir(parents=True)
    (root / "posts").mkdir()
    for name in ("post", "index", "tag"):
        (root / "templates" / f"{name}.html").write_text(
            "<h1>{{ page.title }}</h1>", encoding="utf-8"
        )
    (root / "posts" / "blue-carbuncle.md").write_text(POST, encoding="utf-8")
    return root


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_build_and_clean(tmp_path):
    source = make_project(tmp_path / "site")
    dest = tmp_path / "public"
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["-s", str(source), "-o", str(dest), "build", "--base-url", "https://example.com"],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    assert f"Built 3 pages into {dest}" in result.output
    assert (dest / "blue-carbuncle" / "index.html").exists()
    assert "https://example.com/blue-carbuncle/" in (dest / "atom.xml").read_text(
        encoding="utf-8"
    )

    result = runner.invoke(cli, ["-s", str(source), "-o", str(dest), "clean"])
    assert result.exit_code == 0
    assert f"Removed {dest}" in result.output
    assert not dest.exists()

    result = runner.invoke(cli, ["-s", str(source), "-o", str(dest), "clean"])
    assert result.exit_code == 0
    assert "Nothing to clean" in result.output


def test_build_uses_configured_output_dir(tmp_path, monkeypatch):
    source = make_project(tmp_path / "site")
    (source / "bloggo.yaml").write_text("output_dir: dist\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli, ["-s", "site", "build"], catch_exceptions=False)

    assert result.exit_code == 0
    assert (tmp_path / "dist" / "index.html").exists()


def test_build_failure_reports_file(tmp_path):
    source = make_project(tmp_path / "site")
    bad = source / "posts" / "bad.md"
    bad.write_text("---\ntitle: No Date\nlayout: post\n---\n", encoding="utf-8")
    dest = tmp_path / "public"

    result = CliRunner().invoke(cli, ["-s", str(source), "-o", str(dest), "build"])

    assert result.exit_code == 1
    assert "Build failed:" in result.output
    assert f"File: {bad}" in result.output
    assert "Invalid field 'date': missing" in result.output
    assert not dest.exists()


def test_unknown_log_level(tmp_path):
    source = make_project(tmp_path / "site")
    result = CliRunner().invoke(
        cli, ["-s", str(source), "build"], env={"BLOGGO_LOG": "chatty"}
    )
    assert result.exit_code != 0
    assert "Unknown log level" in result.output


def test_impossible_date_fails_cleanly(tmp_path):
    source = make_project(tmp_path / "site")
    (source / "posts" / "leap.md").write_text(
        "---\ntitle: Leap\ndate: 2023-02-30\nlayout: post\n---\n", encoding="utf-8"
    )

    result = CliRunner().invoke(cli, ["-s", str(source), "-o", str(tmp_path / "out"), "build"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Invalid field 'date'" in result.output
