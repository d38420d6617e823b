"""Shared fixtures for binderlib tests."""

import subprocess
import threading

import pytest
import requests

from binderlib.config import BookConfig


BOOK_YAML = """\
title: Field Notes
subtitle: Collected Articles
author: A. Writer
publisher: Lantern Press
rights: All rights reserved
prefix: field_notes
"""


class FakeResponse:
    def __init__(self, url, content=b"\xff\xd8\xff\xe0jpeg-bytes", status_code=200):
        self.url = url
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error for url: {self.url}")


class FakeSession:
    """Stands in for requests.Session; records every URL requested."""

    def __init__(self, status=None, errors=None):
        self.status = status or {}
        self.errors = errors or {}
        self.calls = []
        self._lock = threading.Lock()

    def get(self, url, timeout=None):
        with self._lock:
            self.calls.append(url)
        if url in self.errors:
            raise self.errors[url]
        return FakeResponse(url, status_code=self.status.get(url, 200))


@pytest.fixture
def book_dir(tmp_path):
    path = tmp_path / "books" / "1_field_notes"
    path.mkdir(parents=True)
    (path / "book.yaml").write_text(BOOK_YAML, encoding="utf-8")
    return path


@pytest.fixture
def config(book_dir):
    return BookConfig.load(str(book_dir))


@pytest.fixture
def write_article(book_dir):
    """Write an article under articles/ and return its path."""
    def _write(name, text):
        articles = book_dir / "articles"
        articles.mkdir(exist_ok=True)
        path = articles / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def session_factory():
    return FakeSession


@pytest.fixture
def fake_run(monkeypatch):
    """
    Replace subprocess.run. Configure with .respond(stdout, stderr,
    returncode, side_effect); inspect .calls afterwards.
    """
    class Runner:
        def __init__(self):
            self.calls = []
            self.stdout = ""
            self.stderr = ""
            self.returncode = 0
            self.side_effect = None

        def respond(self, stdout="", stderr="", returncode=0, side_effect=None):
            self.stdout = stdout
            self.stderr = stderr
            self.returncode = returncode
            self.side_effect = side_effect

        def __call__(self, cmd, **kwargs):
            self.calls.append(cmd)
            if self.side_effect:
                self.side_effect(cmd)
            return subprocess.CompletedProcess(cmd, self.returncode, self.stdout, self.stderr)

    runner = Runner()
    monkeypatch.setattr(subprocess, "run", runner)
    return runner
