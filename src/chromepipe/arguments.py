"""Command-line construction for the browser subprocess."""

import shlex
from collections.abc import Sequence

from chromepipe.errors import InvalidConfiguration
from chromepipe.executable import find_executable
from chromepipe.flags import FLAG_SETS, REDIRECT_SUFFIX, BaselineFlags
from chromepipe.models import ChromeArgs, LaunchOptions

ExtraArgs = str | Sequence[str]


def _wrap(value: ExtraArgs) -> list[str]:
    if isinstance(value, str):
        return [value]
    return list(value)


def _baseline(options: LaunchOptions) -> BaselineFlags:
    try:
        return FLAG_SETS[options.flag_set]
    except KeyError:
        raise InvalidConfiguration(f"unknown flag set {options.flag_set!r}") from None


def _apply_chrome_args(args: list[str], chrome_args: object, split: bool) -> list[str]:
    """Apply the user's override to the flags collected so far."""
    if chrome_args is None:
        return args
    if isinstance(chrome_args, str):
        return args + (shlex.split(chrome_args) if split else [chrome_args])
    if isinstance(chrome_args, ChromeArgs):
        kept = [arg for arg in args if arg not in chrome_args.remove]
        return kept + list(chrome_args.append)
    raise InvalidConfiguration(
        "chrome_args must be a string or {append: [...], remove: [...]}, "
        f"got {type(chrome_args).__name__}"
    )


def _compose(options: LaunchOptions, extra: ExtraArgs, split: bool) -> list[str]:
    flags = _baseline(options)
    args = list(flags.args)
    if options.no_sandbox:
        args.extend(flags.no_sandbox_args)
    args = _apply_chrome_args(args, options.chrome_args, split)
    args.extend(_wrap(extra))
    return args


def build_args(options: LaunchOptions, extra: ExtraArgs = ()) -> list[str]:
    """Return the ordered browser arguments for ``options``.

    ``extra`` holds the mode-specific trailing arguments. When stderr is
    discarded the shell redirection suffix is appended as the last element.
    """
    args = _compose(options, extra, split=False)
    if options.discard_stderr:
        args.append(REDIRECT_SUFFIX)
    return args


def shell_command(
    options: LaunchOptions, extra: ExtraArgs = (), executable: str | None = None
) -> str:
    """Return the command line as a single string for a POSIX shell."""
    if executable is None:
        executable = find_executable(options.chrome_executable)
    return " ".join([shlex.quote(executable), *build_args(options, extra)])


def exec_argv(
    options: LaunchOptions, extra: ExtraArgs = (), executable: str | None = None
) -> list[str]:
    """Return an argument vector for spawning the browser without a shell.

    The redirection suffix is left out; the launcher binds the descriptors
    itself. A string ``chrome_args`` is split using shell rules.
    """
    if executable is None:
        executable = find_executable(options.chrome_executable)
    return [executable, *_compose(options, extra, split=True)]
