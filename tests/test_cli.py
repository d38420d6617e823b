"""End-to-end tests for the command line, with external tools stubbed."""

import json
import shutil

import pytest

from binderlib import book, epubcheck
from binderlib.assets import FetchTask
from binderlib.cli import main
from binderlib.converters import ConversionError, KindlegenConverter, PandocEpubConverter


needs_pandoc = pytest.mark.skipif(shutil.which("pandoc") is None, reason="pandoc not installed")


INTRO = "---\ntitle: Intro\n---\nHello\n"
NEXT = "---\ntitle: Next\n---\n![alt](http://example.com/pic.png)\n"


@pytest.fixture
def project(tmp_path, book_dir, write_article, monkeypatch):
    """A project root with one two-article book; cwd is the root."""
    write_article("01-intro.md", INTRO)
    write_article("02-next.md", NEXT)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def stub_converters(monkeypatch):
    """Replace both converters; record what the EPUB step saw."""
    seen = {}

    def epub_convert(self, source, output):
        with open(source, encoding="utf-8") as f:
            manifest = json.load(f)
        with open(manifest["contents"], encoding="utf-8") as f:
            seen["contents"] = f.read()
        seen["manifest"] = manifest
        with open(output, "wb") as f:
            f.write(b"epub")
        return output

    def mobi_convert(self, source, output):
        seen["mobi_source"] = source
        with open(output, "wb") as f:
            f.write(b"mobi")
        return output

    monkeypatch.setattr(PandocEpubConverter, "convert", epub_convert)
    monkeypatch.setattr(KindlegenConverter, "convert", mobi_convert)
    return seen


@pytest.fixture
def stub_transform(monkeypatch):
    """Skip pandoc: articles pass through as loaded."""
    monkeypatch.setattr(book, "transform_document", lambda document, options, book_dir: (document.text, []))


@pytest.fixture
def stub_fetch(monkeypatch):
    requested = []

    def fetch(tasks, **kwargs):
        requested.extend(tasks)
        return list(tasks)

    monkeypatch.setattr(book, "fetch_assets", fetch)
    return requested


class TestBuildCommand:
    """Tests for the build command."""

    def test_builds_both_formats(self, project, stub_transform, stub_converters) -> None:
        assert main(["field"]) == 0

        output = project / "output"
        assert (output / "field_notes.epub").exists()
        assert (output / "field_notes.mobi").exists()
        assert stub_converters["mobi_source"] == str(output / "field_notes.epub")

        contents = stub_converters["contents"]
        assert contents.index("# Intro") < contents.index("# Next")
        assert stub_converters["manifest"]["title"] == "Field Notes"

        # Intermediates are removed after the epub is built
        assert not (output / "field_notes.md").exists()
        assert not (output / "field_notes.json").exists()

    def test_keep_intermediate_and_epub_only(self, project, stub_transform, stub_converters) -> None:
        assert main(["build", "1", "--epub-only", "--keep-intermediate"]) == 0

        output = project / "output"
        assert (output / "field_notes.md").exists()
        assert (output / "field_notes.json").exists()
        assert not (output / "field_notes.mobi").exists()

    def test_output_dir(self, project, stub_transform, stub_converters) -> None:
        assert main(["field", "--epub-only", "--output-dir", "dist"]) == 0
        assert (project / "dist" / "field_notes.epub").exists()

    def test_unknown_book(self, project, capsys) -> None:
        assert main(["nothing-here"]) == 1
        assert "Could not find book 'nothing-here'" in capsys.readouterr().out

    def test_missing_title_stops_build(self, project, write_article, stub_transform, stub_converters, capsys) -> None:
        write_article("03-untitled.md", "No frontmatter\n")
        assert main(["field"]) == 1
        assert "03-untitled.md" in capsys.readouterr().out
        assert "contents" not in stub_converters

    def test_conversion_error(self, project, stub_transform, monkeypatch, capsys) -> None:
        def fail(self, source, output):
            raise ConversionError("EPUB generation failed (exit 1)")

        monkeypatch.setattr(PandocEpubConverter, "convert", fail)
        assert main(["field"]) == 1
        assert "Error: EPUB generation failed" in capsys.readouterr().out

    def test_no_articles(self, tmp_path, book_dir, monkeypatch, capsys) -> None:
        monkeypatch.chdir(tmp_path)
        assert main(["field"]) == 1
        assert "No markdown articles" in capsys.readouterr().out


class TestOtherCommands:
    """Tests for fetch and validate."""

    def test_fetch_only(self, project, monkeypatch, stub_fetch, stub_converters) -> None:
        task = FetchTask("http://example.com/pic.png", "/tmp/pic-png.jpg")
        monkeypatch.setattr(
            book, "transform_document", lambda document, options, book_dir: (document.text, [task])
        )
        assert main(["fetch", "field"]) == 0
        assert stub_fetch == [task, task]
        assert "contents" not in stub_converters

    def test_validate_needs_epub(self, project, capsys) -> None:
        assert main(["validate", "field"]) == 1
        assert "Build it first" in capsys.readouterr().out

    def test_validate_reports_counts(self, project, monkeypatch, fake_run, capsys) -> None:
        (project / "output").mkdir()
        (project / "output" / "field_notes.epub").write_bytes(b"epub")
        monkeypatch.setattr(epubcheck, "find_epubcheck", lambda: ["epubcheck"])
        fake_run.respond(
            stdout="ERROR(RSC-007): ch001.xhtml: missing image\n"
                   "Messages: 0 fatal / 1 error / 0 warnings / 0 infos\n",
            returncode=1,
        )

        assert main(["validate", "field"]) == 1
        out = capsys.readouterr().out
        assert "✗ epubcheck: 0 fatal, 1 error(s), 0 warning(s)" in out
        assert "ERROR(RSC-007)" in out
        assert fake_run.calls == [["epubcheck", str(project / "output" / "field_notes.epub")]]

    def test_validate_without_epubcheck(self, project, monkeypatch, capsys) -> None:
        (project / "output").mkdir()
        (project / "output" / "field_notes.epub").write_bytes(b"epub")
        monkeypatch.setattr(epubcheck, "find_epubcheck", lambda: None)

        assert main(["validate", "field"]) == 1
        assert "Skipping validation" in capsys.readouterr().out

    def test_no_command(self, capsys) -> None:
        assert main([]) == 1


@needs_pandoc
class TestEndToEnd:
    """The full pipeline over real pandoc, with network and converters stubbed."""

    def test_two_articles(self, project, book_dir, stub_fetch, stub_converters) -> None:
        assert main(["field", "--epub-only"]) == 0

        contents = stub_converters["contents"]
        assert contents.index("# Intro") < contents.index("# Next")
        assert "Hello" in contents
        assert "![](image-cache/pic-png.jpg)" in contents
        assert "http://example.com" not in contents

        assert [task.url for task in stub_fetch] == ["http://example.com/pic.png"]
        assert stub_fetch[0].path == str(book_dir / "image-cache" / "pic-png.jpg")
