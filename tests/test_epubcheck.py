"""Tests for epubcheck discovery and output parsing."""

import shutil

from binderlib import epubcheck
from binderlib.epubcheck import EpubcheckReport, find_epubcheck, parse_summary, run_epubcheck


SUMMARY = "Check finished with warnings\nMessages: 0 fatal / 0 errors / 2 warnings / 0 infos\n"


class TestEpubcheck:
    """Tests for the epubcheck wrapper."""

    def test_parse_summary(self) -> None:
        assert parse_summary(SUMMARY) == (0, 0, 2)
        assert parse_summary("no summary here") is None

    def test_jar_from_environment(self, tmp_path, monkeypatch) -> None:
        jar = tmp_path / "epubcheck.jar"
        jar.write_bytes(b"jar")
        monkeypatch.setenv("EPUBCHECK_JAR", str(jar))
        assert find_epubcheck() == ["java", "-jar", str(jar)]

    def test_command_on_path(self, monkeypatch) -> None:
        monkeypatch.delenv("EPUBCHECK_JAR", raising=False)
        monkeypatch.setattr(shutil, "which", lambda name: "/usr/bin/epubcheck")
        assert find_epubcheck() == ["epubcheck"]

    def test_unavailable(self, monkeypatch) -> None:
        monkeypatch.setattr(epubcheck, "find_epubcheck", lambda: None)
        assert run_epubcheck("book.epub") is None

    def test_java_missing(self, monkeypatch) -> None:
        def missing(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr(epubcheck, "find_epubcheck", lambda: ["java", "-jar", "epubcheck.jar"])
        monkeypatch.setattr(epubcheck.subprocess, "run", missing)
        assert run_epubcheck("book.epub") is None

    def test_valid_with_warnings(self, monkeypatch, fake_run) -> None:
        monkeypatch.setattr(epubcheck, "find_epubcheck", lambda: ["epubcheck"])
        fake_run.respond(stdout="WARNING(CSS-017): epub.css: unused\n" + SUMMARY, returncode=0)

        report = run_epubcheck("book.epub")
        assert fake_run.calls == [["epubcheck", "book.epub"]]
        assert report == EpubcheckReport(
            returncode=0,
            counts=(0, 0, 2),
            messages=["WARNING(CSS-017): epub.css: unused"],
        )
        assert report.valid

    def test_errors(self, monkeypatch, fake_run) -> None:
        monkeypatch.setattr(epubcheck, "find_epubcheck", lambda: ["epubcheck"])
        fake_run.respond(
            stdout="ERROR(RSC-007): book.epub/EPUB/text/ch001.xhtml: missing image\n"
                   "Messages: 0 fatal / 1 error / 0 warnings / 0 infos\n",
            returncode=1,
        )
        report = run_epubcheck("book.epub")
        assert not report.valid
        assert report.counts == (0, 1, 0)
        assert report.messages[0].startswith("ERROR(RSC-007)")
