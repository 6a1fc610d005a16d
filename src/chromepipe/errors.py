"""Exceptions raised while locating, launching and talking to the browser."""

from collections.abc import Sequence


class ChromePipeError(Exception):
    """Base class for every error raised by chromepipe."""


class ExecutableNotFound(ChromePipeError):
    """No usable browser executable could be resolved."""

    def __init__(self, name: str | None = None, candidates: Sequence[str] = ()) -> None:
        self.name = name
        self.candidates = list(candidates)
        if name is not None:
            message = f"could not find chrome executable {name}"
        else:
            message = f"could not find executable from {self.candidates!r}"
        super().__init__(message)


class InvalidConfiguration(ChromePipeError):
    """Launch options or configuration values are malformed."""


class SpawnFailed(ChromePipeError):
    """The browser process could not be started."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"failed to spawn browser: {cause}")


VERSION_REMEDIATION = """\
Failed to determine Chrome version.

If you're using a remote chrome instance, configure the version manually,
either in ~/.chromepipe/config.json:

    {"chrome_version": "Google Chrome 120.0.6099.71"}

or through the environment:

    CHROMEPIPE_CHROME_VERSION="Google Chrome 120.0.6099.71"
"""


class VersionProbeFailed(ChromePipeError):
    """Running the browser with --version failed."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"{VERSION_REMEDIATION}\n--- original error ---\n\n{cause}")


class VersionParseFailed(ChromePipeError):
    """The version output did not contain a dotted four-part version number."""

    def __init__(self, raw_output: str) -> None:
        self.raw_output = raw_output
        super().__init__(f"{VERSION_REMEDIATION}\n--- unrecognised output ---\n\n{raw_output!r}")


class TransportClosed(ChromePipeError):
    """The pipe transport was closed or the browser process has exited."""
