"""Baseline browser command-line flags.

The lists are data: they are an external contract with the browser vendor and
are kept literally. For a description of the switches, see

    https://github.com/GoogleChrome/chrome-launcher/blob/main/docs/chrome-flags-for-tools.md
    https://peter.sh/experiments/chromium-command-line-switches/

``--disable-dev-shm-usage`` is intentionally absent; set it through
``chrome_args`` when shared memory runs out.
"""

from dataclasses import dataclass
from typing import Literal

FlagSetName = Literal["default", "legacy"]

# The browser reads commands from descriptor 3 and writes replies to 4.
DEBUGGING_PIPE_ARGS = ("--remote-debugging-pipe",)
DUMP_DOM_ARGS = ("--dump-dom", "about:blank")

# Binds descriptors 3/4 to stdin/stdout in a shell command line.
PIPE_FD_REDIRECT = "3<&0 4>&1"
# Also discards stderr. Must stay the last element of a shell command line.
REDIRECT_SUFFIX = f"2>/dev/null {PIPE_FD_REDIRECT}"


@dataclass(frozen=True)
class BaselineFlags:
    """A named baseline flag set and the flags it uses to disable sandboxing."""

    name: FlagSetName
    args: tuple[str, ...]
    no_sandbox_args: tuple[str, ...]


DEFAULT_FLAGS = BaselineFlags(
    name="default",
    args=(
        "--headless",
        "--disable-accelerated-2d-canvas",
        "--disable-gpu",
        "--allow-pre-commit-input",
        "--disable-background-networking",
        "--disable-background-timer-throttling",
        "--disable-backgrounding-occluded-windows",
        "--disable-breakpad",
        "--disable-client-side-phishing-detection",
        "--disable-component-extensions-with-background-pages",
        "--disable-component-update",
        "--disable-default-apps",
        "--disable-extensions",
        "--disable-features=Translate,BackForwardCache,AcceptCHFrame,MediaRouter,OptimizationHints",
        "--disable-hang-monitor",
        "--disable-ipc-flooding-protection",
        "--disable-popup-blocking",
        "--disable-prompt-on-repost",
        "--disable-renderer-backgrounding",
        "--disable-sync",
        "--enable-automation",
        "--enable-features=NetworkServiceInProcess2",
        "--export-tagged-pdf",
        "--force-color-profile=srgb",
        "--hide-scrollbars",
        "--metrics-recording-only",
        "--no-default-browser-check",
        "--no-first-run",
        "--no-service-autorun",
        "--password-store=basic",
        "--use-mock-keychain",
    ),
    no_sandbox_args=("--no-sandbox",),
)

# Older browser generations; also disables the zygote when unsandboxed.
LEGACY_FLAGS = BaselineFlags(
    name="legacy",
    args=(
        "--headless",
        "--single-progress",
        "--no-first-run",
        "--no-service-autorun",
        "--disable-accelerated-2d-canvas",
        "--disable-gpu",
        "--hide-scrollbars",
        "--disable-infobars",
        "--disable-notifications",
        "--disable-background-timer-throttling",
        "--disable-backgrounding-occluded-windows",
        "--disable-breakpad",
        "--disable-component-extensions-with-background-pages",
        "--disable-extensions",
        "--disable-features=TranslateUI,BlinkGenPropertyTrees",
        "--disable-ipc-flooding-protection",
        "--disable-renderer-backgrounding",
        "--enable-features=NetworkService,NetworkServiceInProcess",
        "--metrics-recording-only",
        "--mute-audio",
    ),
    no_sandbox_args=("--no-sandbox", "--no-zygote"),
)

FLAG_SETS: dict[str, BaselineFlags] = {
    DEFAULT_FLAGS.name: DEFAULT_FLAGS,
    LEGACY_FLAGS.name: LEGACY_FLAGS,
}


def default_args() -> list[str]:
    """Return the default baseline flags as a fresh list."""
    return list(DEFAULT_FLAGS.args)
