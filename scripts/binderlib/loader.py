"""
Article loading: split YAML frontmatter from the body and replace it
with a level-one heading built from the article title.

    ---
    title: Intro
    date: 2019-04-02
    ---
    Hello

becomes

    # Intro

    Hello
"""

import os
import re
from dataclasses import dataclass

import yaml


# Opening "---" line, YAML, closing "---" or "..." line
FRONTMATTER_RE = re.compile(
    r"\A\ufeff?---[ \t]*\r?\n(.*?)^(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


class DocumentError(Exception):
    """Raised when an article's frontmatter is unusable."""
    pass


@dataclass
class Document:
    path: str
    title: str
    text: str


def split_frontmatter(raw):
    """
    Separate a leading YAML block from the body.

    Returns (metadata dict, body). Text without frontmatter yields ({}, raw).
    Raises DocumentError if the block is not a YAML mapping.
    """
    match = FRONTMATTER_RE.match(raw)
    if not match:
        return {}, raw

    try:
        meta = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise DocumentError(f"invalid frontmatter: {e}")

    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise DocumentError(
            f"frontmatter must be a YAML mapping, got {type(meta).__name__}"
        )

    return meta, raw[match.end():]


def load_document(path, allow_missing_title=False):
    """
    Read one article and return a Document whose text starts with
    "# <title>".

    A missing title is an error unless allow_missing_title is set, in
    which case the file name stands in for it.
    """
    with open(path, encoding="utf-8") as f:
        raw = f.read()

    try:
        meta, body = split_frontmatter(raw)
    except DocumentError as e:
        raise DocumentError(f"{path}: {e}")

    title = meta.get("title")
    title = str(title).strip() if title is not None else ""
    if not title:
        if not allow_missing_title:
            raise DocumentError(f"{path}: frontmatter has no 'title' field")
        title = os.path.splitext(os.path.basename(path))[0]
        print(f"  Warning: {os.path.basename(path)} has no title, using '{title}'")

    body = body.lstrip("\r\n")
    return Document(path=path, title=title, text=f"# {title}\n\n{body}")
