"""
Optional EPUB validation via epubcheck.

run_epubcheck() locates epubcheck (EPUBCHECK_JAR or PATH), runs it on a
built book and returns what it reported; printing is left to the caller.
"""

import os
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


SUMMARY_RE = re.compile(
    r"Messages:\s*(\d+)\s*fatal.*?(\d+)\s*error.*?(\d+)\s*warn",
    re.DOTALL,
)
MESSAGE_PREFIXES = ("FATAL", "ERROR", "WARNING")


@dataclass
class EpubcheckReport:
    returncode: int
    counts: Optional[Tuple[int, int, int]] = None
    messages: List[str] = field(default_factory=list)

    @property
    def valid(self):
        return self.returncode == 0


def find_epubcheck():
    """
    Build the epubcheck command prefix.

    Checks EPUBCHECK_JAR first (run with java), then `epubcheck` on PATH.
    Returns a list, or None when epubcheck is unavailable.
    """
    env_jar = os.environ.get("EPUBCHECK_JAR")
    if env_jar and os.path.exists(env_jar):
        return ["java", "-jar", env_jar]

    if shutil.which("epubcheck"):
        return ["epubcheck"]

    return None


def parse_summary(output):
    """(fatals, errors, warnings) from epubcheck output, or None."""
    summary = SUMMARY_RE.search(output)
    if not summary:
        return None
    return tuple(int(summary.group(i)) for i in (1, 2, 3))


def run_epubcheck(epub_path):
    """Check one EPUB. Returns an EpubcheckReport, or None if epubcheck can't run."""
    prefix = find_epubcheck()
    if prefix is None:
        return None

    try:
        result = subprocess.run(prefix + [epub_path], capture_output=True, text=True)
    except FileNotFoundError:
        # EPUBCHECK_JAR set but no java
        return None

    output = result.stdout + result.stderr
    return EpubcheckReport(
        returncode=result.returncode,
        counts=parse_summary(output),
        messages=[line for line in output.splitlines() if line.startswith(MESSAGE_PREFIXES)],
    )
