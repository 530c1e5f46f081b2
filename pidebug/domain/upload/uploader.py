"""
Program upload

The local publish folder is zipped in memory and sent with a script that
recreates ``~/vsdbg/<program>`` from scratch, unpacks the archive into it
and makes the assembly executable. Every step is chained with ``&&`` so
the first failure stops the script with a nonzero exit code.
"""
import io
import logging
import zipfile
from pathlib import Path
from typing import Optional

from ...core.constants import remote_debug_binary_root
from ...core.interfaces import CommandResult
from ..shell.executor import RemoteShell
from ..shell.models import ScriptBundle
from ..shell.script import ScriptTemplate, validate_identifier

ARCHIVE_NAME = "program.zip"

UPLOAD_SCRIPT = ScriptTemplate("""
mkdir -p {{root}} &&
rm -rf {{folder}} &&
mkdir -p {{folder}} &&
unzip -q {{archive}} -d {{folder}} &&
chmod 770 {{folder}}/{{assembly}}
""")

UPLOAD_WITH_GROUP_SCRIPT = ScriptTemplate("""
mkdir -p {{root}} &&
rm -rf {{folder}} &&
mkdir -p {{folder}} &&
unzip -q {{archive}} -d {{folder}} &&
chmod 770 {{folder}}/{{assembly}} &&
chgrp -R {{group}} {{folder}}
""")


def build_archive(folder: Path) -> bytes:
    """
    Zip a folder's content in memory.

    Raises:
        FileNotFoundError: Folder doesn't exist
    """
    folder = Path(folder).expanduser()
    if not folder.is_dir():
        raise FileNotFoundError(f"Publish folder not found: {folder}")

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for path in sorted(folder.rglob("*")):
            if path.is_file():
                archive.write(path, path.relative_to(folder).as_posix())
    return buffer.getvalue()


def render_upload_script(
    username: str,
    program: str,
    assembly: str,
    target_group: Optional[str] = None,
) -> str:
    root = remote_debug_binary_root(username)
    values = dict(
        root=root,
        folder=f"{root}/{program}",
        archive=ARCHIVE_NAME,
        assembly=assembly,
    )
    if target_group:
        return UPLOAD_WITH_GROUP_SCRIPT.render(group=target_group, **values)
    return UPLOAD_SCRIPT.render(**values)


async def upload_program(
    shell: RemoteShell,
    username: str,
    program: str,
    assembly: str,
    local_folder: Path,
    logger: logging.LoggerAdapter,
    target_group: Optional[str] = None,
) -> CommandResult:
    """
    Replace the remote program folder with the content of a local folder.

    Names are checked before anything is sent to the device.

    Args:
        shell: Executor for the live session
        username: Remote user owning the upload root
        program: Program (folder) name
        assembly: Executable file made runnable after unpacking
        local_folder: Local publish folder
        logger: Host logger
        target_group: Group given ownership of the program, e.g. ``gpio``

    Returns:
        CommandResult of the upload script

    Raises:
        InvalidNameError: A name is unsafe for shell interpolation
        FileNotFoundError: Local folder doesn't exist
    """
    validate_identifier("program", program)
    validate_identifier("assembly", assembly)
    if target_group:
        validate_identifier("target group", target_group)

    script = render_upload_script(username, program, assembly, target_group)
    bundle = ScriptBundle(script=script)
    bundle.add_file(ARCHIVE_NAME, build_archive(local_folder))

    logger.info("Uploading [%s] to [%s/%s]", local_folder, remote_debug_binary_root(username), program)
    response = await shell.run(bundle)
    if response.success:
        logger.info("Upload complete")
    else:
        logger.error("Upload of [%s] failed: %s", program, response.all_text.strip())
    return response
