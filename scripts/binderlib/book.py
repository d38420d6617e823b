"""
The whole build, stage by stage:

    load articles → rewrite each → fetch images → assemble → EPUB
    → remove intermediates → MOBI

Every stage raises on failure; nothing here catches, so the first error
ends the build and intermediates from earlier stages may be left behind.
"""

import os

from binderlib.assemble import assemble_book
from binderlib.assets import fetch_assets
from binderlib.converters import PandocEpubConverter, device_converter
from binderlib.loader import load_document
from binderlib.transform import PipelineOptions, transform_document


def section(title):
    print(f"\n{'─' * 60}")
    print(f"  {title}")
    print(f"{'─' * 60}")


def prepare_articles(config, input_files, verbose=False):
    """
    Load and rewrite every article in order.

    Returns (texts, tasks): the Markdown of each article and the image
    downloads they need.
    """
    options = PipelineOptions.from_config(config)
    texts = []
    tasks = []

    for path in input_files:
        document = load_document(path, allow_missing_title=config.allow_missing_title)
        text, doc_tasks = transform_document(document, options, config.book_dir)
        texts.append(text)
        tasks.extend(doc_tasks)
        if verbose:
            print(f"  {os.path.basename(path)}: {document.title} ({len(doc_tasks)} new image(s))")

    print(f"  ✓ {len(texts)} article(s) prepared")
    return texts, tasks


def fetch_images(config, tasks, verbose=False):
    images = config.images
    return fetch_assets(
        tasks,
        workers=images["workers"],
        timeout=images["timeout"],
        verbose=verbose,
    )


def remove_intermediates(*paths):
    for path in paths:
        if os.path.exists(path):
            os.remove(path)


def build_book(config, input_files, output_dir, epub_only=False,
               keep_intermediate=False, verbose=False):
    """
    Run the full build.

    Returns a dict of format → output path.
    """
    section(f"Preparing {len(input_files)} article(s)")
    texts, tasks = prepare_articles(config, input_files, verbose=verbose)

    section("Image cache")
    fetch_images(config, tasks, verbose=verbose)

    contents_path, manifest_path = assemble_book(texts, config, output_dir)
    if verbose:
        print(f"  Contents: {contents_path}")
        print(f"  Manifest: {manifest_path}")

    outputs = {}
    epub_path = os.path.join(output_dir, f"{config.prefix}.epub")
    outputs["epub"] = PandocEpubConverter(config, verbose=verbose).convert(manifest_path, epub_path)

    if not keep_intermediate:
        remove_intermediates(contents_path, manifest_path)

    if not epub_only:
        mobi_path = os.path.join(output_dir, f"{config.prefix}.mobi")
        outputs["mobi"] = device_converter(config, verbose=verbose).convert(epub_path, mobi_path)

    return outputs
