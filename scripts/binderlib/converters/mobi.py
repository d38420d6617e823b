"""
MOBI converters: EPUB → Kindle format.

kindlegen is the default. It exits 0 on success and 1 when it only has
warnings, and it can also exit cleanly while its log says the MOBI was not
generated, so its output is checked for FAILURE_MARKER as well as its exit
code. Calibre's ebook-convert is the alternative; its exit code is
authoritative.
"""

import os
import shutil

from binderlib.converters.base import Converter, ConversionError


class KindlegenConverter(Converter):
    format_name = "MOBI"
    tool = "kindlegen"

    FAILURE_MARKER = "MOBI file could not be generated"
    OK_CODES = (0, 1)

    def build_cmd(self, source, output):
        flags = [str(flag) for flag in self.config.device.get("flags") or []]
        return [self.tool, source] + flags + ["-o", os.path.basename(output)]

    def check_output(self, result):
        """Fail on the failure marker even when the exit code looks fine."""
        output = (result.stdout or "") + (result.stderr or "")
        if self.FAILURE_MARKER.lower() in output.lower():
            errors = [
                line for line in output.splitlines()
                if line.startswith("Error") or self.FAILURE_MARKER.lower() in line.lower()
            ]
            raise ConversionError(
                "MOBI generation failed" + self.excerpt("\n".join(errors))
            )

    def convert(self, source, output):
        """source: epub path. Raises ConversionError on failure."""
        self.header()
        self.check_tool()

        result = self.exec_cmd(self.build_cmd(source, output), "MOBI generation", self.OK_CODES)
        self.check_output(result)

        # kindlegen always writes next to its input
        produced = os.path.join(os.path.dirname(os.path.abspath(source)), os.path.basename(output))
        if not os.path.exists(produced):
            raise ConversionError(f"kindlegen reported success but {produced} is missing")
        if os.path.abspath(produced) != os.path.abspath(output):
            os.makedirs(os.path.dirname(os.path.abspath(output)), exist_ok=True)
            shutil.move(produced, output)

        if result.returncode == 1:
            print("  Warning: kindlegen finished with warnings")
        print(f"  ✓ {output}")
        return output


class CalibreConverter(Converter):
    format_name = "MOBI"
    tool = "ebook-convert"

    def build_cmd(self, source, output):
        flags = [str(flag) for flag in self.config.device.get("calibre_flags") or []]
        return [self.tool, source, output] + flags

    def convert(self, source, output):
        """source: epub path. Raises ConversionError on failure."""
        self.header()
        self.check_tool()

        os.makedirs(os.path.dirname(os.path.abspath(output)), exist_ok=True)
        self.exec_cmd(self.build_cmd(source, output), "MOBI generation")

        print(f"  ✓ {output}")
        return output
