"""Tests for the device status probe."""

from __future__ import annotations

import logging

from pidebug.core.interfaces import CommandResult
from pidebug.domain.device.prober import parse_status, probe_device, render_status_script
from pidebug.domain.sdk.catalog import SdkCatalog
from pidebug.domain.sdk.models import Architecture
from pidebug.domain.shell.executor import RemoteShell

from conftest import FakeTransport, status_output


class TestStatusScript:
    def test_profile_exports_are_guarded(self) -> None:
        script = render_status_script()

        assert "if ! grep --quiet DOTNET_ROOT /etc/profile" in script
        assert "export DOTNET_ROOT=/lib/dotnet" in script
        assert "mkdir -p \"$DOTNET_ROOT\"" in script
        assert script.rstrip().endswith("exit 0")

    def test_line_order(self) -> None:
        script = render_status_script()

        positions = [script.index(marker) for marker in (
            "uname -m", 'echo "$PATH"', "which unzip", "$DEBUGFOLDER", "$DOTNET_ROOT/sdk",
            "/proc/device-tree/model", "/proc/cpuinfo",
        )]
        assert positions == sorted(positions)


class TestParseStatus:
    def test_arm64_with_known_sdk(self, catalog: SdkCatalog) -> None:
        status = parse_status(status_output(machine="aarch64", sdks="6.0.100", debugger=True), catalog)

        assert status.architecture == Architecture.ARM64
        assert status.has_unzip
        assert status.has_debugger
        assert [sdk.name for sdk in status.installed_sdks] == ["6.0.100"]
        assert status.installed_sdks[0].architecture == Architecture.ARM64
        assert status.model == "Raspberry Pi 4 Model B Rev 1.4"
        assert status.revision == "c03114"
        assert status.is_supported_model

    def test_arm32(self, catalog: SdkCatalog) -> None:
        status = parse_status(status_output(machine="armv7l"), catalog)

        assert status.architecture == Architecture.ARM32
        assert status.installed_sdks == []

    def test_unknown_sdk_is_logged_and_dropped(self, catalog: SdkCatalog, caplog) -> None:
        logger = logging.LoggerAdapter(logging.getLogger("test.prober"), {})

        with caplog.at_level(logging.WARNING, logger="test.prober"):
            status = parse_status(status_output(sdks="6.0.100,9.9.999"), catalog, logger)

        assert [sdk.name for sdk in status.installed_sdks] == ["6.0.100"]
        assert "9.9.999" in caplog.text

    def test_short_output_is_padded(self, catalog: SdkCatalog) -> None:
        status = parse_status("aarch64\n/usr/bin\n", catalog)

        assert status.architecture == Architecture.ARM64
        assert not status.has_unzip
        assert not status.has_debugger
        assert status.model == ""

    def test_unsupported_model(self, catalog: SdkCatalog) -> None:
        status = parse_status(status_output(model="Orange Pi 5"), catalog)

        assert not status.is_supported_model


class TestProbeDevice:
    async def test_probe_runs_one_elevated_script(
        self, shell: RemoteShell, transport: FakeTransport, catalog: SdkCatalog
    ) -> None:
        status = await probe_device(shell, catalog, shell.logger)

        assert status.architecture == Architecture.ARM64
        assert transport.commands[0] == ("which unzip", True)
        assert len(transport.scripts_containing("uname -m")) == 1
        assert transport.scripts[0][1] is True

    async def test_missing_unzip_is_installed_first(self, catalog: SdkCatalog) -> None:
        transport = FakeTransport()
        transport.on("uname -m", CommandResult(exit_code=0, stdout=status_output()))
        transport.on("which unzip", CommandResult(exit_code=1))
        shell = RemoteShell(transport)

        await probe_device(shell, catalog, shell.logger)

        inline = [command for command, _ in transport.commands if not command.startswith(("mkdir -m", "cd ", "rm -rf"))]
        assert inline == ["which unzip", "apt-get update", "apt-get install -yq unzip"]
