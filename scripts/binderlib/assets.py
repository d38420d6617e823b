"""
Remote image cache.

Each remote image maps to one file in the book's cache directory, named
from the URL's basename. Downloads run in parallel and a file that is
already on disk is never fetched again.
"""

import os
import posixpath
import tempfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

import requests

from binderlib.utils import slugify, url_basename


REMOTE_SCHEMES = ("http://", "https://")


class AssetFetchError(Exception):
    """Raised when one or more images could not be downloaded."""

    def __init__(self, failures):
        self.failures = failures
        lines = [f"{len(failures)} image(s) could not be downloaded:"]
        lines.extend(f"    {task.url}: {error}" for task, error in failures)
        super().__init__("\n".join(lines))


@dataclass(frozen=True)
class FetchTask:
    url: str
    path: str


def is_remote(url):
    return url.lower().startswith(REMOTE_SCHEMES)


def cache_filename(url, extension=".jpg"):
    """Deterministic cache file name for a remote URL."""
    return slugify(url_basename(url), fallback="image") + extension


def cache_reference(url, cache_dir, extension=".jpg"):
    """Relative, slash-separated path written into the document for a URL."""
    return posixpath.join(cache_dir.replace(os.sep, "/"), cache_filename(url, extension))


def pending_tasks(tasks):
    """Drop duplicate targets and targets already in the cache."""
    seen = set()
    pending = []
    for task in tasks:
        if task.path in seen:
            continue
        seen.add(task.path)
        if not os.path.exists(task.path):
            pending.append(task)
    return pending


def _download(session, task, timeout):
    response = session.get(task.url, timeout=timeout)
    response.raise_for_status()

    directory = os.path.dirname(task.path)
    os.makedirs(directory, exist_ok=True)

    # Only complete files ever appear at task.path
    fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".part")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(response.content)
        os.replace(tmp_path, task.path)
    except OSError:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
    return task


def fetch_assets(tasks, workers=8, timeout=30, session=None, verbose=False):
    """
    Download every pending image concurrently.

    Waits for all downloads to settle. Failures are reported one by one and
    then raised together as AssetFetchError.

    Returns the list of tasks that were downloaded.
    """
    pending = pending_tasks(tasks)
    if not pending:
        print("  ✓ Image cache up to date")
        return []

    print(f"  Fetching {len(pending)} image(s)...")
    session = session or requests.Session()

    downloaded = []
    failures = []

    with ThreadPoolExecutor(max_workers=max(1, int(workers))) as executor:
        future_to_task = {
            executor.submit(_download, session, task, timeout): task
            for task in pending
        }
        for future in as_completed(future_to_task):
            task = future_to_task[future]
            try:
                future.result()
            except (requests.RequestException, OSError) as e:
                print(f"  ✗ {task.url}: {e}")
                failures.append((task, e))
            else:
                downloaded.append(task)
                if verbose:
                    print(f"  ✓ {task.url} → {os.path.basename(task.path)}")

    if failures:
        raise AssetFetchError(failures)

    print(f"  ✓ {len(downloaded)} image(s) cached")
    return downloaded
