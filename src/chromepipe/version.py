"""Browser version detection, cached for the lifetime of the process."""

import logging
import re
import subprocess
import threading

from chromepipe.errors import ChromePipeError, VersionParseFailed, VersionProbeFailed
from chromepipe.executable import find_executable

log = logging.getLogger(__name__)

VERSION_RE = re.compile(r"\d+\.\d+\.\d+\.\d+")

_cached_version: str | None = None
_probe_lock = threading.Lock()


def extract_version(text: str) -> str:
    """Return the first dotted four-part version number in ``text``."""
    match = VERSION_RE.search(text)
    if match is None:
        raise VersionParseFailed(text)
    return match.group(0)


def _probe(executable: str | None) -> str:
    """Run ``<browser> --version`` and return its combined output."""
    try:
        path = find_executable(executable)
        result = subprocess.run(
            [path, "--version"],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            check=True,
        )
    except (ChromePipeError, OSError, subprocess.CalledProcessError) as e:
        log.debug("version probe failed: %s", e)
        raise VersionProbeFailed(e) from e
    log.debug("%s --version returned %r", path, result.stdout)
    return result.stdout


def chrome_version(override: str | None = None, executable: str | None = None) -> str:
    """Return the browser version, e.g. ``"120.0.6099.71"``.

    A pre-configured ``override`` (any text containing the version, like
    ``"Google Chrome 120.0.6099.71"``) is parsed without starting the
    browser. Otherwise the first successful probe is cached; concurrent
    first callers share a single probe.
    """
    global _cached_version

    if override is not None:
        return extract_version(override)

    cached = _cached_version
    if cached is not None:
        return cached
    with _probe_lock:
        if _cached_version is None:
            _cached_version = extract_version(_probe(executable))
        return _cached_version
