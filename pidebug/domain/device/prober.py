"""
Device status probe

One elevated script gathers everything in a single round trip and
prints it line by line, in this order:

    1. chip architecture (uname -m)
    2. PATH
    3. unzip sentinel
    4. debugger sentinel
    5. comma separated SDK directory names
    6. board model
    7. board revision

The same script makes sure ``/lib/dotnet`` exists with sane ownership and
that the profile exports DOTNET_ROOT and PATH, appending them only once.
"""
import logging
from typing import List, Optional

from ...core.constants import (
    DEBUGGER_MISSING,
    DEBUGGER_PRESENT,
    REMOTE_DEBUGGER_FOLDER,
    REMOTE_DOTNET_FOLDER,
    REMOTE_PROFILE_PATH,
    UNZIP_MISSING,
    UNZIP_PRESENT,
)
from ..sdk.catalog import SdkCatalog
from ..sdk.models import Architecture, SdkDescriptor
from ..shell.executor import RemoteShell
from ..shell.script import ScriptTemplate
from .models import DeviceStatus

STATUS_LINES = 7

STATUS_SCRIPT = ScriptTemplate(r"""
DOTNET_ROOT={{dotnet_root}}
DEBUGFOLDER={{debugger_folder}}

uname -m

echo "$PATH"

if which unzip > /dev/null 2>&1 ; then
    echo '{{unzip_present}}'
else
    echo '{{unzip_missing}}'
fi

if [ -d "$DEBUGFOLDER" ] ; then
    echo '{{debugger_present}}'
else
    echo '{{debugger_missing}}'
fi

SDKS=$(ls -1 "$DOTNET_ROOT/sdk" 2> /dev/null | grep -E '^[0-9]' | paste -sd, -)
echo "$SDKS"

MODEL=$(tr -d '\000' < /proc/device-tree/model 2> /dev/null)
echo "$MODEL"

REVISION=$(awk '/^Revision/ {print $3; exit}' /proc/cpuinfo 2> /dev/null)
echo "$REVISION"

mkdir -p "$DOTNET_ROOT"
chown root:root "$DOTNET_ROOT"
chmod 755 "$DOTNET_ROOT"

if ! grep --quiet DOTNET_ROOT {{profile}} ; then
    echo ''                                   >> {{profile}}
    echo 'export DOTNET_ROOT={{dotnet_root}}' >> {{profile}}
    echo 'export PATH=$PATH:$DOTNET_ROOT'     >> {{profile}}
fi

exit 0
""")


def render_status_script() -> str:
    return STATUS_SCRIPT.render(
        dotnet_root=REMOTE_DOTNET_FOLDER,
        debugger_folder=REMOTE_DEBUGGER_FOLDER,
        profile=REMOTE_PROFILE_PATH,
        unzip_present=UNZIP_PRESENT,
        unzip_missing=UNZIP_MISSING,
        debugger_present=DEBUGGER_PRESENT,
        debugger_missing=DEBUGGER_MISSING,
    )


async def ensure_unzip(shell: RemoteShell, logger: logging.LoggerAdapter) -> None:
    """Install unzip when missing; program uploads depend on it"""
    logger.info("Checking for: [unzip]")
    response = await shell.run("which unzip", elevated=True)
    if response.success:
        return

    logger.info("Installing: [unzip]")
    await shell.run_checked("apt-get update", elevated=True)
    await shell.run_checked("apt-get install -yq unzip", elevated=True)


def parse_status(
    output: str,
    catalog: SdkCatalog,
    logger: Optional[logging.LoggerAdapter] = None,
) -> DeviceStatus:
    """
    Convert status script output into a DeviceStatus.

    SDK names the catalog doesn't know are logged and dropped.
    """
    lines = [line.strip() for line in output.splitlines()]
    lines += [""] * (STATUS_LINES - len(lines))
    processor, path, unzip_line, debugger_line, sdk_line, model, revision = lines[:STATUS_LINES]

    architecture = Architecture.from_uname(processor)

    sdks: List[SdkDescriptor] = []
    for sdk_name in (name.strip() for name in sdk_line.split(",")):
        if not sdk_name:
            continue
        item = catalog.find(sdk_name, architecture)
        if item is not None:
            sdks.append(item)
        elif logger:
            logger.warning(
                ".NET SDK [%s] is present on the device but is not in the SDK catalog. "
                "Consider updating the catalog.",
                sdk_name,
            )

    return DeviceStatus(
        processor=processor,
        architecture=architecture,
        path=path,
        has_unzip=unzip_line == UNZIP_PRESENT,
        has_debugger=debugger_line == DEBUGGER_PRESENT,
        installed_sdks=sdks,
        model=model,
        revision=revision,
    )


async def probe_device(
    shell: RemoteShell,
    catalog: SdkCatalog,
    logger: logging.LoggerAdapter,
) -> DeviceStatus:
    """
    Discover device state; called exactly once per session.

    Raises:
        RemoteCommandError: unzip installation or the status script failed
    """
    await ensure_unzip(shell, logger)

    logger.info("Retrieving status")
    response = await shell.run_checked(render_status_script(), elevated=True)
    status = parse_status(response.stdout, catalog, logger)

    logger.info("architecture: %s (%s)", status.processor, status.architecture.value)
    logger.info("path:         %s", status.path)
    logger.info("unzip:        %s", status.has_unzip)
    logger.info("debugger:     %s", status.has_debugger)
    logger.info("sdks:         %s", ", ".join(sdk.name for sdk in status.installed_sdks) or "none")
    logger.info("model:        %s", status.model or "unknown")
    logger.info("revision:     %s", status.revision or "unknown")

    if status.model and not status.is_supported_model:
        logger.warning("Board [%s] is not a supported Raspberry Pi model", status.model)

    return status
