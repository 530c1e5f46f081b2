"""Tests for the remote shell executor."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from pidebug.core.exceptions import InvalidNameError, RemoteCommandError
from pidebug.core.interfaces import CommandResult
from pidebug.domain.shell.executor import RemoteShell
from pidebug.domain.shell.models import RetryPolicy, ScriptBundle

from conftest import FakeTransport

FAIL = CommandResult(exit_code=1, stdout="", stderr="nope")
OK = CommandResult(exit_code=0, stdout="yes\n")


class TestRun:
    async def test_inline_command(self, shell: RemoteShell, transport: FakeTransport) -> None:
        transport.on("hostname", CommandResult(exit_code=0, stdout="raspberrypi\n"))

        result = await shell.run("hostname")

        assert result.stdout == "raspberrypi\n"
        assert transport.commands == [("hostname", False)]

    async def test_elevated_command(self, shell: RemoteShell, transport: FakeTransport) -> None:
        await shell.run("apt-get update", elevated=True)

        assert transport.commands == [("apt-get update", True)]

    async def test_multiline_string_runs_as_script(self, shell: RemoteShell, transport: FakeTransport) -> None:
        await shell.run("echo one\necho two\n", elevated=True)

        assert transport.scripts == [("echo one\necho two\n", True)]
        mkdir, run, cleanup = transport.commands
        assert mkdir[0].startswith("mkdir -m 700 /tmp/pidebug-")
        assert run[0].endswith("&& sh ./script.sh") and run[1] is True
        assert cleanup[0].startswith("rm -rf /tmp/pidebug-") and cleanup[1] is True

    async def test_bundle_uploads_attachments(self, shell: RemoteShell, transport: FakeTransport) -> None:
        bundle = ScriptBundle(script="unzip -q program.zip\n")
        bundle.add_file("program.zip", b"PK")

        await shell.run(bundle)

        assert transport.uploaded("program.zip") == b"PK"
        script_path = next(path for path in transport.uploads if path.endswith("/script.sh"))
        assert transport.modes[script_path] == 0o700

    async def test_bundle_folder_removed_on_failure(self, shell: RemoteShell, transport: FakeTransport) -> None:
        transport.on("exit 1", FAIL)

        result = await shell.run("echo failing\nexit 1\n")

        assert result.exit_code == 1
        assert transport.commands[-1][0].startswith("rm -rf /tmp/pidebug-")

    async def test_bundle_rejects_unsafe_attachment_name(self, shell: RemoteShell, transport: FakeTransport) -> None:
        bundle = ScriptBundle(script="ls\n", files={"bad name.zip": b""})

        with pytest.raises(InvalidNameError):
            await shell.run(bundle)

        assert transport.commands == []


class TestRunChecked:
    async def test_success_returns_result(self, shell: RemoteShell) -> None:
        result = await shell.run_checked("true")

        assert result.success

    async def test_failure_raises_with_hostname(self, shell: RemoteShell, transport: FakeTransport) -> None:
        transport.on("false", CommandResult(exit_code=2, stderr="boom"))

        with pytest.raises(RemoteCommandError) as excinfo:
            await shell.run_checked("false")

        assert excinfo.value.hostname == "raspberrypi"
        assert excinfo.value.stderr == "boom"
        assert excinfo.value.exit_code == 2
        assert str(excinfo.value) == "[raspberrypi]: boom"


class TestRunWithRetry:
    async def test_retries_until_success(self, transport: FakeTransport) -> None:
        sleep = AsyncMock()
        shell = RemoteShell(transport, sleep=sleep)
        transport.on("check", FAIL, FAIL, OK)

        result = await shell.run_with_retry("check")

        assert result.success
        assert len(transport.commands) == 3
        assert [call.args[0] for call in sleep.await_args_list] == [0.2, 0.2]

    async def test_gives_up_after_three_attempts(self, transport: FakeTransport) -> None:
        sleep = AsyncMock()
        shell = RemoteShell(transport, sleep=sleep)
        transport.on("check", FAIL)

        result = await shell.run_with_retry("check")

        assert result.exit_code == 1
        assert len(transport.commands) == 3
        assert sleep.await_count == 2

    async def test_no_retry_on_first_success(self, shell: RemoteShell, transport: FakeTransport) -> None:
        result = await shell.run_with_retry("check")

        assert result.success
        assert len(transport.commands) == 1

    async def test_custom_policy(self, transport: FakeTransport) -> None:
        sleep = AsyncMock()
        shell = RemoteShell(transport, sleep=sleep)
        transport.on("check", FAIL)

        await shell.run_with_retry("check", policy=RetryPolicy(attempts=5, backoff=0.05))

        assert len(transport.commands) == 5
        sleep.assert_awaited_with(0.05)


class TestTransfers:
    async def test_download(self, shell: RemoteShell, transport: FakeTransport) -> None:
        transport.files["/home/pi/file"] = b"data"

        assert await shell.download("/home/pi/file") == b"data"

    async def test_upload(self, shell: RemoteShell, transport: FakeTransport) -> None:
        await shell.upload("/home/pi/file", b"data", mode=0o600)

        assert transport.uploads["/home/pi/file"] == b"data"
        assert transport.modes["/home/pi/file"] == 0o600
