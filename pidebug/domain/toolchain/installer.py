"""
.NET SDK and debugger installation

Each artifact moves through ``missing -> downloading -> verifying ->
unpacking -> installed``. The scripts print a stage marker on entering
each state so a failed run can report how far it got. Installs are
single attempt; the caller decides whether to retry.

Already installed artifacts are detected from the cached DeviceStatus,
the device is never re-probed.
"""
import logging

from ...core.constants import (
    CHECKSUM_MISMATCH_EXIT_CODE,
    DEBUGGER_INSTALLER_URI,
    REMOTE_DEBUGGER_FOLDER,
    REMOTE_DOTNET_FOLDER,
    REMOTE_SDK_ARCHIVE,
    SDK_DEPENDENCY_PACKAGES,
    STAGE_MARKER,
)
from ...core.exceptions import ChecksumMismatchError, RemoteCommandError
from ..device.models import DeviceStatus
from ..sdk.catalog import SdkCatalog
from ..sdk.models import SdkDescriptor
from ..shell.executor import RemoteShell
from ..shell.script import ScriptTemplate, quoted
from .models import InstallResult, InstallState

DEBUGGER_ARTIFACT = "debugger"

INSTALL_SDK_SCRIPT = ScriptTemplate("""
apt-get update
if ! apt-get install -yq """ + " ".join(SDK_DEPENDENCY_PACKAGES) + """ ; then
    exit 1
fi

echo "{{marker}} downloading"
rm -f {{archive}}
if ! wget --quiet --output-document={{archive}} {{link}} ; then
    rm -f {{archive}}
    exit 1
fi

echo "{{marker}} verifying"
if ! echo {{checksum_line}} | sha512sum --check --status ; then
    rm -f {{archive}}
    exit {{mismatch_code}}
fi

echo "{{marker}} unpacking"
mkdir -p {{dotnet_root}}
if ! tar --same-owner -zxf {{archive}} -C {{dotnet_root}} ; then
    rm -f {{archive}}
    exit 1
fi
rm -f {{archive}}

echo "{{marker}} installed"
exit 0
""")

INSTALL_DEBUGGER_SCRIPT = ScriptTemplate("""
echo "{{marker}} downloading"
if ! curl -sSL {{installer}} | /bin/sh /dev/stdin -v latest -l {{debugger_folder}} ; then
    exit 1
fi

echo "{{marker}} installed"
exit 0
""")


def render_sdk_script(sdk: SdkDescriptor) -> str:
    return INSTALL_SDK_SCRIPT.render(
        marker=STAGE_MARKER,
        archive=REMOTE_SDK_ARCHIVE,
        link=quoted(sdk.link),
        checksum_line=quoted(f"{sdk.sha512}  {REMOTE_SDK_ARCHIVE}"),
        mismatch_code=CHECKSUM_MISMATCH_EXIT_CODE,
        dotnet_root=REMOTE_DOTNET_FOLDER,
    )


def render_debugger_script() -> str:
    return INSTALL_DEBUGGER_SCRIPT.render(
        marker=STAGE_MARKER,
        installer=quoted(DEBUGGER_INSTALLER_URI),
        debugger_folder=REMOTE_DEBUGGER_FOLDER,
    )


class ToolchainInstaller:
    """Installs toolchain artifacts into a session's device"""

    def __init__(
        self,
        shell: RemoteShell,
        status: DeviceStatus,
        catalog: SdkCatalog,
        logger: logging.LoggerAdapter,
    ):
        self.shell = shell
        self.status = status
        self.catalog = catalog
        self.logger = logger

    async def install_sdk(self, requested: str) -> InstallResult:
        """
        Install a .NET SDK unless the device already has it.

        Args:
            requested: SDK name (``6.0.100``) or major.minor (``6.0``)

        Returns:
            InstallResult; on success the SDK is added to the DeviceStatus

        Raises:
            SdkNotFoundError: No installable catalog entry for the device architecture
        """
        if self.status.has_sdk(requested):
            self.logger.info(".NET SDK [%s] is already installed", requested)
            return InstallResult(artifact=requested, state=InstallState.INSTALLED, skipped=True)

        sdk = self.catalog.select(requested, self.status.architecture)
        self.logger.info("Installing .NET SDK [%s] (%s)", sdk.name, sdk.architecture.value)

        response = await self.shell.run(render_sdk_script(sdk), elevated=True)
        state = InstallState.from_output(response.stdout)
        result = InstallResult(artifact=sdk.name, state=state, output=response.all_text)

        if response.success and state == InstallState.INSTALLED:
            self.status.add_sdk(sdk)
            self.logger.info(".NET SDK [%s] installed", sdk.name)
            return result

        if response.exit_code == CHECKSUM_MISMATCH_EXIT_CODE:
            result.error = ChecksumMismatchError(
                f"[{self.shell.hostname}]: .NET SDK [{sdk.name}] archive does not match its SHA-512 checksum"
            )
        else:
            result.error = RemoteCommandError(self.shell.hostname, response.all_text, response.exit_code)
        if result.state == InstallState.INSTALLED:
            result.state = InstallState.UNPACKING

        self.logger.error("Cannot install .NET SDK [%s] (stopped at %s)", sdk.name, result.state.value)
        self.logger.error("%s", response.all_text.strip() or result.error)
        return result

    async def install_debugger(self) -> InstallResult:
        """
        Install the remote debugger unless the device already has it.

        Returns:
            InstallResult; on success the DeviceStatus debugger flag is set
        """
        if self.status.has_debugger:
            self.logger.info("Debugger is already installed")
            return InstallResult(artifact=DEBUGGER_ARTIFACT, state=InstallState.INSTALLED, skipped=True)

        self.logger.info("Installing debugger to [%s]", REMOTE_DEBUGGER_FOLDER)
        response = await self.shell.run(render_debugger_script(), elevated=True)
        state = InstallState.from_output(response.stdout)
        result = InstallResult(artifact=DEBUGGER_ARTIFACT, state=state, output=response.all_text)

        if response.success and state == InstallState.INSTALLED:
            self.status.mark_debugger_installed()
            self.logger.info("Debugger installed")
            return result

        result.error = RemoteCommandError(self.shell.hostname, response.all_text, response.exit_code)
        if result.state == InstallState.INSTALLED:
            result.state = InstallState.DOWNLOADING
        self.logger.error("Cannot install debugger")
        self.logger.error("%s", response.all_text.strip() or result.error)
        return result
