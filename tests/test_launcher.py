"""Tests for chromepipe.launcher, run against small shell-script stand-ins."""

import logging
import os
import subprocess
import threading
from unittest.mock import patch

import pytest

from chromepipe.errors import SpawnFailed, TransportClosed
from chromepipe.launcher import ProcessHandle, _close_fds, spawn, warm_up
from chromepipe.models import LaunchOptions, ProcessExit

pytestmark = pytest.mark.skipif(os.name != "posix", reason="stub browsers are /bin/sh scripts")

ECHO_ON_DEBUGGING_PIPE = 'exec cat <&3 >&4\n'


@pytest.fixture
def stub(tmp_path):
    """Return a factory writing an executable /bin/sh stub browser."""

    def make(body: str, name: str = "fake-chrome") -> str:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(0o755)
        return str(path)

    return make


def _read_until(handle: ProcessHandle, expected: bytes) -> bytes:
    received = b""
    for chunk in handle.chunks():
        received += chunk
        if len(received) >= len(expected):
            break
    return received


class TestSpawn:
    def test_send_writes_null_terminated_frame(self, stub):
        options = LaunchOptions(chrome_executable=stub(ECHO_ON_DEBUGGING_PIPE))
        with spawn(options) as handle:
            handle.send(b"ping")
            assert _read_until(handle, b"ping\0") == b"ping\0"

    def test_pipe_bound_to_fds_3_and_4_when_stderr_kept(self, stub):
        options = LaunchOptions(
            chrome_executable=stub(ECHO_ON_DEBUGGING_PIPE), discard_stderr=False
        )
        with spawn(options) as handle:
            handle.send(b'{"id":1}')
            assert _read_until(handle, b'{"id":1}\0') == b'{"id":1}\0'

    def test_shell_fallback_uses_redirect_suffix(self, stub):
        options = LaunchOptions(chrome_executable=stub(ECHO_ON_DEBUGGING_PIPE))
        with spawn(options, use_shell=True) as handle:
            assert isinstance(handle.command, str)
            assert handle.command.endswith("--remote-debugging-pipe 2>/dev/null 3<&0 4>&1")
            handle.send(b"ping")
            assert _read_until(handle, b"ping\0") == b"ping\0"

    def test_shell_fallback_binds_fds_when_stderr_kept(self, stub):
        options = LaunchOptions(
            chrome_executable=stub(ECHO_ON_DEBUGGING_PIPE), discard_stderr=False
        )
        with spawn(options, use_shell=True) as handle:
            assert handle.command.endswith("--remote-debugging-pipe")
            handle.send(b"ping")
            assert _read_until(handle, b"ping\0") == b"ping\0"

    @patch("chromepipe.launcher.CAN_BIND_FDS", False)
    def test_shell_fallback_redirects_fds_when_they_cannot_be_bound(self, stub):
        options = LaunchOptions(
            chrome_executable=stub(ECHO_ON_DEBUGGING_PIPE), discard_stderr=False
        )
        with spawn(options, use_shell=True) as handle:
            assert handle.command.endswith("--remote-debugging-pipe 3<&0 4>&1")
            handle.send(b"ping")
            assert _read_until(handle, b"ping\0") == b"ping\0"

    def test_passes_debugging_pipe_flag(self, stub, tmp_path):
        args_file = tmp_path / "args"
        options = LaunchOptions(
            chrome_executable=stub(f'printf "%s\\n" "$@" > "{args_file}"\n'),
            no_sandbox=True,
        )
        with spawn(options) as handle:
            handle.wait(timeout=10)
        args = args_file.read_text().splitlines()
        assert args[-2:] == ["--no-sandbox", "--remote-debugging-pipe"]
        assert args[0] == "--headless"

    def test_immediate_exit_notifies_once_and_rejects_sends(self, stub):
        notifications: list[ProcessExit] = []
        options = LaunchOptions(chrome_executable=stub("exit 3\n"))
        handle = spawn(options)
        handle.on_exit(notifications.append)

        status = handle.wait(timeout=10)

        assert status == ProcessExit(returncode=3)
        assert handle.is_running() is False
        with pytest.raises(TransportClosed):
            handle.send(b"ping")
        handle.close()
        assert notifications == [ProcessExit(returncode=3)]

    def test_late_observer_is_called_immediately(self, stub):
        handle = spawn(LaunchOptions(chrome_executable=stub("exit 0\n")))
        handle.wait(timeout=10)
        notifications: list[ProcessExit] = []
        handle.on_exit(notifications.append)
        handle.close()
        assert notifications == [ProcessExit(returncode=0)]

    def test_inbound_stream_ends_when_process_exits(self, stub):
        handle = spawn(LaunchOptions(chrome_executable=stub("printf 'bye' >&4\n")))
        assert b"".join(handle.chunks()) == b"bye"
        handle.wait(timeout=10)
        handle.close()

    def test_inbound_stream_ends_when_leftover_child_holds_pipe(self, stub):
        handle = spawn(
            LaunchOptions(chrome_executable=stub("printf 'bye' >&4\nsleep 5 &\nexit 0\n"))
        )
        assert handle.wait(timeout=10) == ProcessExit(returncode=0)
        received: list[bytes] = []
        consumer = threading.Thread(target=lambda: received.extend(handle.chunks()))
        consumer.start()
        consumer.join(timeout=2)
        handle.close()
        assert not consumer.is_alive()
        assert b"".join(received) == b"bye"

    def test_kill_reports_signal(self, stub):
        handle = spawn(LaunchOptions(chrome_executable=stub(ECHO_ON_DEBUGGING_PIPE)))
        handle.kill()
        status = handle.wait(timeout=10)
        handle.close()
        assert status.signal == 9

    def test_close_does_not_terminate_process(self, stub):
        handle = spawn(LaunchOptions(chrome_executable=stub("exec sleep 30\n")))
        try:
            handle.close()
            assert handle.wait(timeout=0.2) is None
            assert handle.is_running()
        finally:
            handle.terminate()
            handle.wait(timeout=10)

    def test_missing_executable_is_spawn_failed(self, tmp_path):
        with pytest.raises(SpawnFailed) as exc_info:
            spawn(LaunchOptions(chrome_executable=str(tmp_path / "missing")))
        assert exc_info.value.cause is not None

    @patch("chromepipe.launcher.subprocess.Popen", side_effect=OSError("exec format error"))
    @patch("chromepipe.launcher.os.close")
    def test_popen_failure_closes_all_pipes(self, mock_close, _popen, stub):
        with patch("chromepipe.launcher.os.pipe", side_effect=[(10, 11), (12, 13)]):
            with pytest.raises(SpawnFailed):
                spawn(LaunchOptions(chrome_executable=stub("exit 0\n")))
        closed = {call.args[0] for call in mock_close.call_args_list}
        assert {10, 11, 12, 13} <= closed


class TestCloseFds:
    @patch("chromepipe.launcher.os.close", side_effect=OSError(9, "Bad file descriptor"))
    def test_failures_are_logged_and_remaining_fds_closed(self, mock_close, caplog):
        caplog.set_level(logging.DEBUG, logger="chromepipe.launcher")
        _close_fds(97, 98)
        assert {97, 98} <= {call.args[0] for call in mock_close.call_args_list}
        assert "closing fd 97 failed" in caplog.text
        assert "closing fd 98 failed" in caplog.text


class TestWarmUp:
    def test_strips_blank_document(self, stub):
        body = (
            'printf "<html><head></head><body></body></html>\\n"\n'
            'echo "font cache ready"\n'
        )
        assert warm_up(LaunchOptions(chrome_executable=stub(body))) == "font cache ready\n"

    def test_keeps_stderr_when_configured(self, stub):
        options = LaunchOptions(chrome_executable=stub('echo "gpu warning" >&2\n'), discard_stderr=False)
        assert warm_up(options) == "gpu warning\n"

    def test_runs_dump_dom(self, stub):
        with patch("chromepipe.launcher.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess([], 0, stdout="")
            warm_up(LaunchOptions(chrome_executable=stub("exit 0\n")))
        argv = mock_run.call_args.args[0]
        assert argv[-2:] == ["--dump-dom", "about:blank"]
