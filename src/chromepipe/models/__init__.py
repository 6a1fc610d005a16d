"""Model package for chromepipe."""

from chromepipe.models.launch_options import ChromeArgs, LaunchOptions
from chromepipe.models.process_exit import ProcessExit

__all__ = [
    "ChromeArgs",
    "LaunchOptions",
    "ProcessExit",
]
