"""
binderlib — markdown-articles-to-ebook build toolchain.

Public API:
    from binderlib.config import BookConfig
    from binderlib.resolve import find_book_dir, assemble_inputs
    from binderlib.loader import load_document
    from binderlib.transform import PipelineOptions, run_pipeline, transform_document
    from binderlib.assets import fetch_assets
    from binderlib.assemble import assemble_book
    from binderlib.converters import PandocEpubConverter, DEVICE_CONVERTERS
    from binderlib.book import build_book
"""
