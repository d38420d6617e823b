"""
Parser for the two custom HTML blocks articles may contain.

    <aside>
      <img src="../assets/map.png">
      <p>Routes drawn in <b>red</b> are seasonal.</p>
    </aside>

    <checkbox-container><input type="checkbox"> Pack a torch</checkbox-container>

parse_custom_block() returns AsideBlock, ChecklistBlock, or UnmatchedBlock
so callers branch on the type rather than on regex leftovers. The text
fields keep any Markdown the author wrote inside the element.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from bs4 import BeautifulSoup


BLANK_LINES_RE = re.compile(r"\n\s*\n")


@dataclass
class AsideBlock:
    image_src: Optional[str]
    paragraphs: List[str] = field(default_factory=list)


@dataclass
class ChecklistBlock:
    text: str


@dataclass
class UnmatchedBlock:
    raw: str


def starts_with_tag(html, tag):
    """True when `html` opens with `<tag`, not a longer tag name sharing the prefix."""
    head = html.lstrip().lower()
    prefix = f"<{tag.lower()}"
    return head.startswith(prefix) and (
        len(head) == len(prefix) or not (head[len(prefix)].isalnum() or head[len(prefix)] in "-_")
    )


def _paragraphs(element):
    """Text of an element split into paragraphs, one line per source line."""
    for br in element.find_all("br"):
        br.replace_with("\n")
    for block in element.find_all(["p", "div", "li"]):
        block.insert_before("\n\n")
        block.insert_after("\n\n")

    paragraphs = []
    for chunk in BLANK_LINES_RE.split(element.get_text()):
        lines = [" ".join(line.split()) for line in chunk.splitlines()]
        text = "\n".join(line for line in lines if line)
        if text:
            paragraphs.append(text)
    return paragraphs


def first_image_src(html):
    """src of the first <img> in an HTML fragment, or None."""
    img = BeautifulSoup(html, "html.parser").find("img", src=True)
    return img["src"].strip() if img is not None else None


def parse_custom_block(html, aside_tag="aside", checklist_tag="checkbox-container"):
    """Classify a raw HTML block and pull out the fields we render."""
    if starts_with_tag(html, aside_tag):
        soup = BeautifulSoup(html, "html.parser")
        root = soup.find(aside_tag.lower()) or soup
        img = root.find("img", src=True)
        image_src = None
        if img is not None:
            image_src = img["src"].strip()
            img.decompose()
        return AsideBlock(image_src=image_src, paragraphs=_paragraphs(root))

    if starts_with_tag(html, checklist_tag):
        soup = BeautifulSoup(html, "html.parser")
        text = " ".join(soup.get_text().split())
        return ChecklistBlock(text=text)

    return UnmatchedBlock(raw=html)
