"""
Round-trip Markdown through pandoc's JSON AST, plus small helpers for
walking and building AST nodes.

Every element is a dict {"t": tag, "c": contents}; leaf elements such as
Space carry no "c". An Image is

    {"t": "Image", "c": [attr, alt_inlines, [url, title]]}
"""

import json
import subprocess


# Raw HTML blocks stay whole (no markdown parsing inside them) and a lone
# image stays an Image inside a paragraph instead of becoming a figure.
READ_FORMAT = "markdown-markdown_in_html_blocks-implicit_figures"
WRITE_FORMAT = "markdown-implicit_figures"


class PandocError(Exception):
    """Raised when pandoc cannot parse or serialize a document."""
    pass


def _pandoc(args, text):
    cmd = ["pandoc"] + args
    try:
        result = subprocess.run(
            cmd,
            input=text,
            capture_output=True,
            text=True,
            encoding="utf-8",
        )
    except FileNotFoundError:
        raise PandocError("pandoc not found on PATH")

    if result.returncode != 0:
        detail = (result.stderr or "").strip().splitlines()[:20]
        raise PandocError(
            f"pandoc failed (exit {result.returncode})"
            + ("".join(f"\n    {line}" for line in detail))
        )
    return result.stdout


def read_markdown(text):
    """Parse Markdown into a pandoc JSON document."""
    return json.loads(_pandoc(["--from", READ_FORMAT, "--to", "json"], text))


def write_markdown(doc):
    """Serialize a pandoc JSON document back to Markdown."""
    return _pandoc(
        ["--from", "json", "--to", WRITE_FORMAT, "--wrap=none", "--markdown-headings=atx"],
        json.dumps(doc),
    )


# ── Walking ────────────────────────────────────────────────────────────


def walk(value, action):
    """
    Apply `action` to every element below `value`, parents first.

    `action(elem)` returns None to keep the element, a replacement element,
    or a list of elements spliced in its place (empty to drop it).
    Children of the resulting elements are visited afterwards.
    """
    if isinstance(value, list):
        items = []
        for item in value:
            if isinstance(item, dict) and "t" in item:
                items.extend(_walk_element(item, action))
            else:
                items.append(walk(item, action))
        return items
    if isinstance(value, dict):
        if "t" in value:
            elements = _walk_element(value, action)
            return elements[0] if len(elements) == 1 else elements
        return {key: walk(item, action) for key, item in value.items()}
    return value


def _walk_element(elem, action):
    replacement = action(elem)
    if replacement is None:
        replacement = [elem]
    elif isinstance(replacement, dict):
        replacement = [replacement]
    for item in replacement:
        if "c" in item:
            item["c"] = walk(item["c"], action)
    return replacement


def walk_document(doc, action):
    """Walk the body blocks of a document in place; metadata is left alone."""
    doc["blocks"] = walk(doc["blocks"], action)
    return doc


# ── Building ───────────────────────────────────────────────────────────


def text_inlines(text):
    """Turn plain text into Str/Space/SoftBreak inlines."""
    inlines = []
    for line in text.splitlines():
        words = line.split()
        if not words:
            continue
        if inlines:
            inlines.append({"t": "SoftBreak"})
        for i, word in enumerate(words):
            if i:
                inlines.append({"t": "Space"})
            inlines.append({"t": "Str", "c": word})
    return inlines


def image(url, alt="", title=""):
    return {
        "t": "Image",
        "c": [["", [], []], text_inlines(alt), [url, title]],
    }


def para(inlines):
    return {"t": "Para", "c": inlines}


def plain(inlines):
    return {"t": "Plain", "c": inlines}


def block_quote(blocks):
    return {"t": "BlockQuote", "c": blocks}


def bullet_list(items):
    """items: a list of block lists, one per list item."""
    return {"t": "BulletList", "c": items}
