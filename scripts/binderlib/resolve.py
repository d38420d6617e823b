"""
Book resolution, article assembly, and artifact lookup.

Every command that needs to find a book directory, gather its articles
in reading order, or locate a stylesheet or cover imports from here.
"""

import os
import re
import glob

from binderlib.config import ConfigError


def natural_sort_key(s):
    """Sort strings with embedded numbers naturally (2.md before 10.md)."""
    return [
        int(text) if text.isdigit() else text.lower()
        for text in re.split(r"(\d+)", s)
    ]


def find_book_dir(identifier, project_root):
    """
    Resolve a book identifier to its directory.

    `identifier` is a directory holding book.yaml, a book number (`1` for
    books/1_field_notes), or a word in the directory name. A number match
    wins over a name match. Returns a path, or None.
    """
    for candidate in (identifier, os.path.join(project_root, identifier)):
        if os.path.isfile(os.path.join(candidate, "book.yaml")):
            return os.path.abspath(candidate)

    books_root = os.path.join(project_root, "books")
    if not os.path.isdir(books_root):
        return None

    entries = [
        entry for entry in sorted(os.listdir(books_root), key=natural_sort_key)
        if os.path.isdir(os.path.join(books_root, entry))
    ]
    numbered = [entry for entry in entries if identifier.isdigit() and entry.split("_", 1)[0] == identifier]
    named = [entry for entry in entries if identifier.lower() in entry.lower()]

    matches = numbered or named
    return os.path.join(books_root, matches[0]) if matches else None


def assemble_inputs(book_dir, articles=None):
    """
    Assemble article files in reading order.

    An explicit `articles` list (paths relative to the book directory) is
    used as given. Otherwise articles/*.md is sorted naturally, falling back
    to *.md in the book root.
    """
    if articles:
        files = []
        for entry in articles:
            path = os.path.join(book_dir, entry)
            if not os.path.isfile(path):
                raise ConfigError(f"Article listed in book.yaml not found: {entry}")
            files.append(os.path.abspath(path))
        return files

    files = glob.glob(os.path.join(book_dir, "articles", "*.md"))
    if not files:
        files = glob.glob(os.path.join(book_dir, "*.md"))
    files.sort(key=lambda p: natural_sort_key(os.path.basename(p)))
    return [os.path.abspath(f) for f in files]


def resolve_artifact(book_dir, filename):
    """
    Resolve an artifact filename to its full path.

    Search order (first match wins):
        1. book artifacts/    (per-book, e.g. cover.jpg)
        2. repo artifacts/    (shared across all books, e.g. epub.css)

    Returns: absolute path or None.
    """
    if not filename:
        return None

    path = os.path.join(book_dir, "artifacts", filename)
    if os.path.exists(path):
        return os.path.abspath(path)

    # Up from books/<book>
    repo_root = os.path.dirname(os.path.dirname(os.path.abspath(book_dir)))
    path = os.path.join(repo_root, "artifacts", filename)
    if os.path.exists(path):
        return os.path.abspath(path)

    return None
