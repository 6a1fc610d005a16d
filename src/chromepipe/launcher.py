"""Spawning the browser with a remote-debugging pipe.

On POSIX the browser is executed directly. The debugging pipe is bound to the
child's descriptors 3 (commands in) and 4 (replies out) before ``exec``:

* with ``discard_stderr`` (the default) the pipe is attached to stdin/stdout,
  stderr goes to ``/dev/null`` and 3/4 are duplicated from 0/1;
* without it, the pipe goes straight to 3/4 and the child inherits our stdio.

The shell fallback (the default off POSIX) runs the shell-joined command line.
When stderr is discarded the command line itself moves stdin/stdout onto 3/4;
otherwise the pipe is bound to 3/4 before ``exec`` as above, or by appending
the same redirection where that is not possible.
"""

import logging
import os
import subprocess
import sys
import threading
from collections.abc import Callable, Iterator
from typing import Any

from chromepipe.arguments import ExtraArgs, exec_argv, shell_command
from chromepipe.errors import ExecutableNotFound, SpawnFailed
from chromepipe.executable import find_executable
from chromepipe.flags import DEBUGGING_PIPE_ARGS, DUMP_DOM_ARGS, PIPE_FD_REDIRECT
from chromepipe.models import LaunchOptions, ProcessExit
from chromepipe.transport import PipeTransport

if sys.platform != "win32":
    import fcntl

log = logging.getLogger(__name__)

BROWSER_IN_FD = 3
BROWSER_OUT_FD = 4
# Whether descriptors can be rearranged in the child before exec.
CAN_BIND_FDS = sys.platform != "win32"
BLANK_DOCUMENT = "<html><head></head><body></body></html>\n"

ExitObserver = Callable[[ProcessExit], None]


def _pipe_binder(read_fd: int, write_fd: int) -> Callable[[], None]:
    """Return a pre-exec hook binding ``read_fd``/``write_fd`` to descriptors 3/4."""

    def bind() -> None:
        # Move both sources above 4 first so neither dup2 clobbers the other.
        read_src = fcntl.fcntl(read_fd, fcntl.F_DUPFD_CLOEXEC, BROWSER_OUT_FD + 1)
        write_src = fcntl.fcntl(write_fd, fcntl.F_DUPFD_CLOEXEC, BROWSER_OUT_FD + 1)
        os.dup2(read_src, BROWSER_IN_FD)
        os.dup2(write_src, BROWSER_OUT_FD)

    return bind


class ProcessHandle:
    """A running browser process and the transport attached to it.

    The caller owns the process: closing the handle only releases the pipe,
    use :meth:`terminate` or :meth:`kill` to end the browser.
    """

    def __init__(
        self,
        proc: subprocess.Popen,
        transport: PipeTransport,
        command: str | list[str],
    ) -> None:
        self.command = command
        self.transport = transport
        self._proc = proc
        self._exit_lock = threading.Lock()
        self._exit_status: ProcessExit | None = None
        self._exited = threading.Event()
        self._observers: list[ExitObserver] = []
        self._monitor = threading.Thread(
            target=self._monitor_exit, daemon=True, name=f"chromepipe-monitor-{proc.pid}"
        )
        self._monitor.start()

    def __enter__(self) -> "ProcessHandle":
        return self

    def __exit__(self, *exc) -> None:
        if self.is_running():
            self.terminate()
            self.wait()
        self.close()

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def exit_status(self) -> ProcessExit | None:
        return self._exit_status

    def is_running(self) -> bool:
        return not self._exited.is_set()

    def send(self, message: bytes) -> None:
        self.transport.send(message)

    def chunks(self) -> Iterator[bytes]:
        return self.transport.chunks()

    def on_exit(self, callback: ExitObserver) -> None:
        """Register ``callback`` to receive the exit notification once."""
        with self._exit_lock:
            if self._exit_status is None:
                self._observers.append(callback)
                return
            status = self._exit_status
        self._notify(callback, status)

    def wait(self, timeout: float | None = None) -> ProcessExit | None:
        """Block until the process exits; returns None on timeout."""
        self._exited.wait(timeout)
        return self._exit_status

    def terminate(self) -> None:
        if self.is_running():
            self._proc.terminate()

    def kill(self) -> None:
        if self.is_running():
            self._proc.kill()

    def close(self) -> None:
        self.transport.close()

    def _monitor_exit(self) -> None:
        status = ProcessExit.from_returncode(self._proc.wait())
        self.transport.mark_peer_exited()
        with self._exit_lock:
            self._exit_status = status
            observers, self._observers = self._observers, []
        self._exited.set()
        log.debug("browser pid %d exited: %s", self._proc.pid, status)
        for callback in observers:
            self._notify(callback, status)

    @staticmethod
    def _notify(callback: ExitObserver, status: ProcessExit) -> None:
        try:
            callback(status)
        except Exception:
            log.exception("exit observer %r failed", callback)


def _close_fds(*fds: int) -> None:
    for fd in fds:
        try:
            os.close(fd)
        except OSError as e:
            log.debug("closing fd %d failed: %s", fd, e)


def _popen_kwargs(
    options: LaunchOptions, use_shell: bool, browser_in: int, browser_out: int
) -> dict[str, Any]:
    """Wire the pipe ends ``browser_in``/``browser_out`` into the child."""
    if use_shell and (options.discard_stderr or not CAN_BIND_FDS):
        # The command line itself moves stdin/stdout onto 3/4.
        return {"shell": True, "stdin": browser_in, "stdout": browser_out}
    if options.discard_stderr:
        return {
            "stdin": browser_in,
            "stdout": browser_out,
            "stderr": subprocess.DEVNULL,
            "close_fds": False,
            "preexec_fn": _pipe_binder(0, 1),
        }
    return {
        "shell": use_shell,
        "close_fds": False,
        "preexec_fn": _pipe_binder(browser_in, browser_out),
    }


def spawn(
    options: LaunchOptions,
    extra: ExtraArgs = DEBUGGING_PIPE_ARGS,
    *,
    use_shell: bool | None = None,
) -> ProcessHandle:
    """Start the browser and return a handle with its pipe transport."""
    if use_shell is None:
        use_shell = os.name != "posix"
    try:
        executable = find_executable(options.chrome_executable)
    except ExecutableNotFound as e:
        raise SpawnFailed(e) from e

    command: str | list[str]
    if use_shell:
        command = shell_command(options, extra, executable)
        if not options.discard_stderr and not CAN_BIND_FDS:
            command = f"{command} {PIPE_FD_REDIRECT}"
    else:
        command = exec_argv(options, extra, executable)

    to_browser_read, to_browser_write = os.pipe()
    from_browser_read, from_browser_write = os.pipe()
    try:
        proc = subprocess.Popen(
            command, **_popen_kwargs(options, use_shell, to_browser_read, from_browser_write)
        )
    except (OSError, subprocess.SubprocessError) as e:
        _close_fds(to_browser_read, to_browser_write, from_browser_read, from_browser_write)
        raise SpawnFailed(e) from e

    # The child holds its own copies now.
    _close_fds(to_browser_read, from_browser_write)
    log.debug("spawned browser pid %d: %s", proc.pid, command)
    transport = PipeTransport(write_fd=to_browser_write, read_fd=from_browser_read)
    return ProcessHandle(proc, transport, command)


def warm_up(options: LaunchOptions) -> str:
    """Run the browser once against a blank page and return its diagnostics."""
    argv = exec_argv(options, DUMP_DOM_ARGS)
    log.debug("warming up: %s", argv)
    try:
        result = subprocess.run(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL if options.discard_stderr else subprocess.STDOUT,
            text=True,
            check=False,
        )
    except OSError as e:
        raise SpawnFailed(e) from e
    return result.stdout.replace(BLANK_DOCUMENT, "")
