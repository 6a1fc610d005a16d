"""Browser executable discovery."""

import logging
import os
import shutil

from chromepipe.errors import ExecutableNotFound

log = logging.getLogger(__name__)

# Platform package names first, then well-known absolute install paths.
DEFAULT_EXECUTABLES = (
    "chromium-browser",
    "chromium",
    "google-chrome",
    "chrome",
    "chrome.exe",
    "/usr/bin/chromium-browser",
    "/usr/bin/chromium",
    "/usr/bin/google-chrome",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
)


def _resolve_executable(candidate: str) -> str | None:
    """Resolve an executable name or path to a runnable command path."""
    has_sep = os.path.sep in candidate or (
        os.path.altsep is not None and os.path.altsep in candidate
    )
    if has_sep:
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return os.path.abspath(candidate)
        return None
    return shutil.which(candidate)


def find_executable(override: str | None = None) -> str:
    """Return the browser executable to run.

    An explicit ``override`` (name or path) must resolve, otherwise the
    default candidates are tried in order.
    """
    if override is not None:
        executable = _resolve_executable(override)
        if executable is None:
            raise ExecutableNotFound(name=override)
        log.debug("resolved %s to %s", override, executable)
        return executable

    for candidate in DEFAULT_EXECUTABLES:
        executable = _resolve_executable(candidate)
        if executable:
            log.debug("found browser executable %s", executable)
            return executable
    raise ExecutableNotFound(candidates=DEFAULT_EXECUTABLES)
