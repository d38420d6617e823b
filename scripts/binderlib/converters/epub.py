"""
EPUB converter.

Pipeline: manifest (JSON) → pandoc → epub. The manifest doubles as the
pandoc metadata file; JSON is valid YAML.
"""

import json
import os

from binderlib.converters.base import Converter, ConversionError
from binderlib.resolve import resolve_artifact


class PandocEpubConverter(Converter):
    format_name = "EPUB"
    tool = "pandoc"

    def read_manifest(self, manifest_path):
        with open(manifest_path, encoding="utf-8") as f:
            manifest = json.load(f)
        if not manifest.get("contents"):
            raise ConversionError(f"{manifest_path} has no 'contents' path")
        return manifest

    def build_cmd(self, manifest_path, output_path):
        manifest = self.read_manifest(manifest_path)
        book_dir = self.config.book_dir
        epub = self.config.epub

        cmd = [
            self.tool,
            manifest["contents"],
            "--from", "markdown+smart",
            "--metadata-file", manifest_path,
            "--metadata", f"lang={self.config.lang}",
            "--resource-path", book_dir,
            "--epub-title-page=false",
            "--toc",
            "--toc-depth", str(manifest.get("tocDepth", 1)),
        ]

        css_path = resolve_artifact(book_dir, epub.get("css"))
        if css_path:
            cmd.extend(["--css", css_path])
            self.log(f"  CSS:   {css_path}")

        cover_path = resolve_artifact(book_dir, epub.get("cover"))
        if cover_path:
            cmd.extend(["--epub-cover-image", cover_path])
            self.log(f"  Cover: {cover_path}")
        else:
            print("  Warning: No cover image found")

        cmd.extend(["-o", output_path])
        return cmd

    def convert(self, source, output):
        """source: manifest path. Raises ConversionError on failure."""
        self.header()
        self.check_tool()

        os.makedirs(os.path.dirname(os.path.abspath(output)), exist_ok=True)
        self.exec_cmd(self.build_cmd(source, output), "EPUB generation")

        print(f"  ✓ {output}")
        return output
