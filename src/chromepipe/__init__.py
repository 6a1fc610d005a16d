"""chromepipe: launch headless Chrome and talk to it over the debugging pipe."""

__version__ = "0.1.0"

from chromepipe.arguments import build_args, exec_argv, shell_command  # noqa: E402
from chromepipe.errors import (  # noqa: E402
    ChromePipeError,
    ExecutableNotFound,
    InvalidConfiguration,
    SpawnFailed,
    TransportClosed,
    VersionParseFailed,
    VersionProbeFailed,
)
from chromepipe.executable import find_executable  # noqa: E402
from chromepipe.launcher import ProcessHandle, spawn, warm_up  # noqa: E402
from chromepipe.models import ChromeArgs, LaunchOptions, ProcessExit  # noqa: E402
from chromepipe.transport import PipeTransport, split_frames  # noqa: E402
from chromepipe.version import chrome_version, extract_version  # noqa: E402

__all__ = [
    "ChromeArgs",
    "ChromePipeError",
    "ExecutableNotFound",
    "InvalidConfiguration",
    "LaunchOptions",
    "PipeTransport",
    "ProcessExit",
    "ProcessHandle",
    "SpawnFailed",
    "TransportClosed",
    "VersionParseFailed",
    "VersionProbeFailed",
    "__version__",
    "build_args",
    "chrome_version",
    "exec_argv",
    "extract_version",
    "find_executable",
    "shell_command",
    "spawn",
    "split_frames",
    "warm_up",
]
