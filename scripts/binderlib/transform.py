"""
Per-article rewrites over the pandoc AST.

Stages run in this order, each over the whole tree:

    1. quote_asides          <aside> blocks → block quotes (may add images)
    2. list_checklists       <checkbox-container> blocks → list items
    3. normalize_images      clear alt text, absolute asset paths → relative
    4. localize_remote_images   http(s) images → image cache paths

Only the custom tags are removed; Markdown written inside an element is
parsed like the rest of the article, so its images reach stages 3 and 4.

run_pipeline() returns the document together with the fetch tasks it
found; nothing is collected globally.
"""

import os
import re

from binderlib import pandoc_ast as ast
from binderlib.assets import FetchTask, cache_filename, cache_reference, is_remote
from binderlib.blocks import (
    AsideBlock,
    ChecklistBlock,
    first_image_src,
    parse_custom_block,
    starts_with_tag,
)


WHITESPACE = ("Space", "SoftBreak", "LineBreak")


class PipelineOptions:
    """The slice of BookConfig the rewrites need."""

    def __init__(
        self,
        aside_tag="aside",
        checklist_tag="checkbox-container",
        aside_prefix="../assets/",
        absolute_prefix="/assets/",
        relative_prefix="assets/",
        cache_dir="image-cache",
        extension=".jpg",
    ):
        self.aside_tag = aside_tag
        self.checklist_tag = checklist_tag
        self.aside_prefix = aside_prefix
        self.absolute_prefix = absolute_prefix
        self.relative_prefix = relative_prefix
        self.cache_dir = cache_dir
        self.extension = extension

    @classmethod
    def from_config(cls, config):
        blocks = config.blocks
        images = config.images
        return cls(
            aside_tag=blocks["aside_tag"],
            checklist_tag=blocks["checklist_tag"],
            aside_prefix=images["aside_prefix"],
            absolute_prefix=images["absolute_prefix"],
            relative_prefix=images["relative_prefix"],
            cache_dir=images["cache_dir"],
            extension=images["extension"],
        )


def _is_html(elem):
    return elem["t"] in ("RawBlock", "RawInline") and elem["c"][0] == "html"


def _closes_tag(html, tag):
    return re.fullmatch(rf"\s*</\s*{re.escape(tag)}\s*>\s*", html, re.IGNORECASE) is not None


def _split_inline_elements(inlines, tag):
    """
    Split a paragraph's inlines around inline <tag>...</tag> elements.

    Pandoc keeps known block tags as a RawBlock but leaves unknown custom
    elements inside a paragraph, one RawInline per tag. Returns a list of
    (inlines, is_element) runs, or None when the paragraph holds no such
    element. An element left open runs to the end of the paragraph.
    """
    runs = []
    current = []
    depth = 0
    found = False
    for elem in inlines:
        if _is_html(elem) and starts_with_tag(elem["c"][1], tag):
            if depth == 0:
                runs.append((current, False))
                current = []
            depth += 1
            found = True
            continue
        if depth and _is_html(elem) and _closes_tag(elem["c"][1], tag):
            depth -= 1
            if depth == 0:
                runs.append((current, True))
                current = []
            continue
        current.append(elem)

    if not found:
        return None
    runs.append((current, depth > 0))
    return runs


def _expand_paragraph(block, tag, build):
    """Replace each inline <tag> element of a Para/Plain with build(inlines)."""
    runs = _split_inline_elements(block["c"], tag)
    if runs is None:
        return None
    blocks = []
    for inlines, is_element in runs:
        if is_element:
            blocks.append(build(inlines))
        else:
            inlines = _trim(inlines)
            if inlines:
                blocks.append({"t": block["t"], "c": inlines})
    return blocks


def _strip_html(inlines):
    """Drop raw HTML tags, keeping the text and Markdown between them."""
    return ast.walk(inlines, lambda elem: [] if _is_html(elem) else None)


def _trim(inlines):
    start, end = 0, len(inlines)
    while start < end and inlines[start]["t"] in WHITESPACE:
        start += 1
    while end > start and inlines[end - 1]["t"] in WHITESPACE:
        end -= 1
    return inlines[start:end]


def _single_line(inlines):
    """Collapse every run of whitespace inlines to one Space."""
    collapsed = []
    for elem in inlines:
        if elem["t"] in WHITESPACE:
            if collapsed and collapsed[-1]["t"] == "Space":
                continue
            elem = {"t": "Space"}
        collapsed.append(elem)
    return _trim(collapsed)


def _markdown_blocks(text):
    """Blocks of the Markdown left over once a custom element's tags are gone."""
    if not text.strip():
        return []
    return ast.read_markdown(text)["blocks"]


def _replace_prefix(url, old, new):
    if old and url.startswith(old):
        return new + url[len(old):]
    return url


# ── Stages ─────────────────────────────────────────────────────────────


def quote_asides(doc, options):
    def quote(image_src, blocks):
        if image_src:
            src = _replace_prefix(image_src, options.aside_prefix, options.relative_prefix)
            blocks = [ast.para([ast.image(src)])] + blocks
        return ast.block_quote(blocks)

    def inline_quote(inlines):
        image_src = None
        for elem in inlines:
            if _is_html(elem):
                image_src = first_image_src(elem["c"][1])
                if image_src:
                    break
        text = _trim(_strip_html(inlines))
        return quote(image_src, [ast.para(text)] if text else [])

    def action(block):
        if block["t"] == "RawBlock" and _is_html(block):
            parsed = parse_custom_block(block["c"][1], options.aside_tag, options.checklist_tag)
            if not isinstance(parsed, AsideBlock):
                return None
            return quote(parsed.image_src, _markdown_blocks("\n\n".join(parsed.paragraphs)))
        if block["t"] in ("Para", "Plain"):
            return _expand_paragraph(block, options.aside_tag, inline_quote)
        return None

    return ast.walk_document(doc, action)


def list_checklists(doc, options):
    def inline_item(inlines):
        return ast.bullet_list([[ast.plain(_single_line(_strip_html(inlines)))]])

    def action(block):
        if block["t"] == "RawBlock" and _is_html(block):
            parsed = parse_custom_block(block["c"][1], options.aside_tag, options.checklist_tag)
            if not isinstance(parsed, ChecklistBlock):
                return None
            item = _markdown_blocks(parsed.text)
            if len(item) == 1 and item[0]["t"] == "Para":
                item = [ast.plain(item[0]["c"])]
            return ast.bullet_list([item or [ast.plain([])]])
        if block["t"] in ("Para", "Plain"):
            blocks = _expand_paragraph(block, options.checklist_tag, inline_item)
            if blocks is None:
                return None
            # Neighbouring checkboxes on consecutive lines share one list
            merged = []
            for item in blocks:
                if merged and item["t"] == merged[-1]["t"] == "BulletList":
                    merged[-1]["c"].extend(item["c"])
                else:
                    merged.append(item)
            return merged
        return None

    return ast.walk_document(doc, action)


def normalize_images(doc, options):
    """Empty every image's alt text and make asset paths relative."""
    def action(elem):
        if elem["t"] != "Image":
            return None
        attr, _alt, (url, title) = elem["c"]
        url = _replace_prefix(url, options.absolute_prefix, options.relative_prefix)
        return {"t": "Image", "c": [attr, [], [url, title]]}

    return ast.walk_document(doc, action)


def localize_remote_images(doc, options, book_dir):
    """
    Point remote images at the local cache.

    Returns (doc, tasks); a task is only created when the cached file is
    missing from disk.
    """
    tasks = []
    seen = set()

    def action(elem):
        if elem["t"] != "Image":
            return None
        attr, alt, (url, title) = elem["c"]
        if not is_remote(url):
            return None

        local = cache_reference(url, options.cache_dir, options.extension)
        path = os.path.join(
            book_dir, options.cache_dir, cache_filename(url, options.extension)
        )
        if path not in seen and not os.path.exists(path):
            seen.add(path)
            tasks.append(FetchTask(url=url, path=path))
        return {"t": "Image", "c": [attr, alt, [local, title]]}

    ast.walk_document(doc, action)
    return doc, tasks


# ── Pipeline ───────────────────────────────────────────────────────────


def run_pipeline(doc, options, book_dir):
    """Apply every stage in order. Returns (doc, fetch tasks)."""
    doc = quote_asides(doc, options)
    doc = list_checklists(doc, options)
    doc = normalize_images(doc, options)
    return localize_remote_images(doc, options, book_dir)


def transform_document(document, options, book_dir):
    """Parse a loaded Document, rewrite it, and return (markdown, tasks)."""
    doc = ast.read_markdown(document.text)
    doc, tasks = run_pipeline(doc, options, book_dir)
    return ast.write_markdown(doc), tasks
