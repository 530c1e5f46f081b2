"""
SSH key provisioning

Creates a key pair on the device the first time we connect with a
password, downloads it to the local keystore and authorizes the public
half so later connections can use key authentication. Also re-authorizes
an existing public key after the device lost it (e.g. re-imaged).
"""
import logging
import uuid
from pathlib import Path
from typing import Optional

from ...core.constants import SSH_KEY_BITS, remote_home
from ...core.exceptions import KeyReadError, PiDebugError
from ...core.utils import local_key_comment
from ...infrastructure.state.keystore import KeyStore
from ..connection.models import ConnectionDescriptor
from ..shell.executor import RemoteShell
from ..shell.script import ScriptTemplate, quoted

CREATE_KEY_SCRIPT = ScriptTemplate("""
if ! ssh-keygen -t rsa -b {{bits}} -P '' -C {{comment}} -f {{private_key}} -m pem ; then
    exit 1
fi

exit 0
""")

AUTHORIZE_KEY_SCRIPT = ScriptTemplate("""
mkdir -p {{home}}/.ssh
chmod 700 {{home}}/.ssh
touch {{home}}/.ssh/authorized_keys
chmod 600 {{home}}/.ssh/authorized_keys

if ! grep --quiet --fixed-strings --line-regexp {{public_key}} {{home}}/.ssh/authorized_keys ; then
    echo {{public_key}} >> {{home}}/.ssh/authorized_keys
    exit $?
fi

exit 0
""")

REMOVE_KEYS_SCRIPT = ScriptTemplate("""
rm -f {{private_key}}
rm -f {{public_key}}
""")


async def authorize_public_key(
    shell: RemoteShell,
    username: str,
    public_key: str,
) -> None:
    """
    Append a public key to the user's ``authorized_keys`` unless present.

    Raises:
        RemoteCommandError: Script failed
    """
    script = AUTHORIZE_KEY_SCRIPT.render(
        home=remote_home(username),
        public_key=quoted(public_key.strip()),
    )
    await shell.run_checked(script)


def read_public_key(descriptor: ConnectionDescriptor) -> str:
    """
    Read the local public key for a connection.

    Falls back to ``<private key>.pub`` when no public key path is set.

    Raises:
        KeyReadError: No readable public key
    """
    path: Optional[str] = descriptor.public_key_path
    if not path and descriptor.private_key_path:
        path = descriptor.private_key_path + ".pub"
    if not path:
        raise KeyReadError("<none>", "no public key configured")

    key_path = Path(path).expanduser()
    try:
        text = key_path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        raise KeyReadError(str(key_path), "cannot read public key") from e
    if not text:
        raise KeyReadError(str(key_path), "public key is empty")
    return text


async def reauthorize_existing_key(
    shell: RemoteShell,
    descriptor: ConnectionDescriptor,
    logger: logging.LoggerAdapter,
) -> None:
    """Re-append the current local public key; no new key pair is generated"""
    logger.info("Reauthorizing the public key")
    await authorize_public_key(shell, descriptor.user, read_public_key(descriptor))


async def ensure_keys(
    shell: RemoteShell,
    descriptor: ConnectionDescriptor,
    keystore: KeyStore,
    logger: logging.LoggerAdapter,
) -> bool:
    """
    Create and register an SSH key pair for the connection.

    The pair is generated on the device into a temporary path under the
    user's home folder, authorized, downloaded into the keystore and
    finally deleted from the device (even when a download fails).

    Args:
        shell: Executor for the live session
        descriptor: Connection descriptor; its key paths are updated
        keystore: Local key storage
        logger: Host logger

    Returns:
        True when the descriptor's key paths were updated

    Raises:
        RemoteCommandError: Key generation or authorization failed
    """
    logger.info("Creating SSH keys")

    key_name = uuid.uuid4().hex
    home = remote_home(descriptor.user)
    temp_private = f"{home}/{key_name}"
    temp_public = f"{temp_private}.pub"

    try:
        await shell.run_checked(CREATE_KEY_SCRIPT.render(
            bits=SSH_KEY_BITS,
            comment=quoted(local_key_comment()),
            private_key=temp_private,
        ))

        public_key = await shell.download(temp_public)
        private_key = await shell.download(temp_private)

        await authorize_public_key(shell, descriptor.user, public_key.decode("utf-8"))

        private_path, public_path = keystore.save(descriptor.name, private_key, public_key)
        descriptor.private_key_path = str(private_path)
        descriptor.public_key_path = str(public_path)
        logger.info("SSH keys saved to [%s]", private_path)
    finally:
        await _remove_temporary_keys(shell, temp_private, temp_public, logger)

    return True


async def _remove_temporary_keys(
    shell: RemoteShell,
    private_key: str,
    public_key: str,
    logger: logging.LoggerAdapter,
) -> None:
    try:
        cleanup = await shell.run(
            REMOVE_KEYS_SCRIPT.render(private_key=private_key, public_key=public_key),
            elevated=True,
        )
    except PiDebugError as e:
        logger.warning("Cannot remove temporary keys: %s", e)
        return
    if not cleanup.success:
        logger.warning("Cannot remove temporary keys: %s", cleanup.all_text)
