"""
Base class for the external format converters.

Subclasses implement `convert()` and set `format_name` / `tool`.
Shared logic (tool lookup, process execution, error reporting) lives here.
"""

import shutil
import subprocess
from abc import ABC, abstractmethod


class ConversionError(Exception):
    """Raised when an external converter fails or is missing."""
    pass


class Converter(ABC):
    """
    Abstract base for converters.

    Subclasses must define:
        format_name:  str    — human-readable name ("EPUB", "MOBI")
        tool:         str    — executable looked up on PATH
        convert():    method — (source, output) → output path, or raise
    """

    format_name = None  # Override in subclass
    tool = None         # Override in subclass

    def __init__(self, config, verbose=False):
        self.config = config
        self.verbose = verbose

    # ── Logging ────────────────────────────────────────────

    def log(self, msg):
        if self.verbose:
            print(msg)

    def header(self):
        print(f"\n{'─' * 60}")
        print(f"  Building {self.format_name}: {self.config.title}")
        print(f"{'─' * 60}")

    # ── Process execution ──────────────────────────────────

    def check_tool(self, name=None):
        """Raise ConversionError unless the tool is on PATH."""
        name = name or self.tool
        if not shutil.which(name):
            raise ConversionError(f"{name} not found on PATH")

    def exec_cmd(self, cmd, label="Command", ok_codes=(0,)):
        """
        Run a command with captured output.

        Raises ConversionError on a missing executable or an exit code
        outside ok_codes. Returns the CompletedProcess.
        """
        self.log(f"  $ {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            raise ConversionError(f"{cmd[0]} not found")

        if self.verbose and result.stdout:
            print(result.stdout.rstrip())

        if result.returncode not in ok_codes:
            raise ConversionError(
                f"{label} failed (exit {result.returncode})"
                + self.excerpt(result.stderr or result.stdout)
            )
        return result

    @staticmethod
    def excerpt(output, limit=20):
        lines = (output or "").strip().splitlines()[:limit]
        return "".join(f"\n    {line}" for line in lines)

    # ── Abstract interface ─────────────────────────────────

    @abstractmethod
    def convert(self, source, output):
        """Produce `output` from `source`. Returns the output path."""
        ...
