"""
Book assembly: fold the transformed articles into one Markdown file and
write the JSON manifest the EPUB converter reads.
"""

import datetime
import json
import os


MANIFEST_FIELDS = ["title", "subtitle", "author", "publisher", "rights"]


def join_articles(texts):
    """Concatenate article texts, one blank line between each."""
    return "\n\n".join(text.strip("\n") for text in texts) + "\n"


def build_manifest(config, contents_path, today=None):
    """Descriptive metadata plus the absolute path of the aggregate file."""
    today = today or datetime.date.today()
    manifest = {"tocDepth": config.toc_depth}
    for key in MANIFEST_FIELDS:
        value = config.get(key)
        manifest[key] = "" if value is None else str(value)
    manifest["date"] = today.isoformat()
    manifest["contents"] = os.path.abspath(contents_path)
    return manifest


def assemble_book(texts, config, work_dir, today=None):
    """
    Write <prefix>.md and <prefix>.json into work_dir.

    Returns (contents_path, manifest_path).
    """
    os.makedirs(work_dir, exist_ok=True)

    contents_path = os.path.join(work_dir, f"{config.prefix}.md")
    with open(contents_path, "w", encoding="utf-8") as f:
        f.write(join_articles(texts))

    manifest_path = os.path.join(work_dir, f"{config.prefix}.json")
    with open(manifest_path, "w", encoding="utf-8") as f:
        json.dump(build_manifest(config, contents_path, today), f, indent=2, ensure_ascii=False)
        f.write("\n")

    return contents_path, manifest_path
