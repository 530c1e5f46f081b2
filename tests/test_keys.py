"""Tests for SSH key provisioning."""

from __future__ import annotations

import stat
from pathlib import Path

import pytest

from pidebug.core.exceptions import ConnectionError, KeyReadError, RemoteCommandError
from pidebug.core.interfaces import CommandResult
from pidebug.domain.connection.models import ConnectionDescriptor
from pidebug.domain.keys.provisioner import (
    authorize_public_key,
    ensure_keys,
    read_public_key,
    reauthorize_existing_key,
)
from pidebug.domain.shell.executor import RemoteShell
from pidebug.infrastructure.state.keystore import KeyStore

from conftest import FAKE_PRIVATE_KEY, FAKE_PUBLIC_KEY, FakeTransport


class TestEnsureKeys:
    async def test_generates_downloads_and_saves(
        self,
        shell: RemoteShell,
        transport: FakeTransport,
        keystore: KeyStore,
        descriptor: ConnectionDescriptor,
    ) -> None:
        changed = await ensure_keys(shell, descriptor, keystore, shell.logger)

        assert changed
        private = Path(descriptor.private_key_path)
        public = Path(descriptor.public_key_path)
        assert private.read_bytes() == FAKE_PRIVATE_KEY
        assert public.read_bytes() == FAKE_PUBLIC_KEY
        assert stat.S_IMODE(private.stat().st_mode) == 0o600
        assert private.parent == keystore.keys_dir

        keygen = transport.scripts_containing("ssh-keygen")
        assert len(keygen) == 1
        assert "-t rsa -b 2048 -P ''" in keygen[0]
        assert "-f /home/pi/" in keygen[0]
        assert "-m pem" in keygen[0]

    async def test_public_key_is_authorized_once(
        self, shell: RemoteShell, transport: FakeTransport, keystore: KeyStore, descriptor: ConnectionDescriptor
    ) -> None:
        await ensure_keys(shell, descriptor, keystore, shell.logger)

        authorize = transport.scripts_containing("authorized_keys")
        assert len(authorize) == 1
        assert "grep --quiet --fixed-strings --line-regexp" in authorize[0]
        assert "ssh-rsa AAAAB3NzaC1yc2EAAAADAQABAAABAQC7 tester@workstation" in authorize[0]

    async def test_temp_keys_removed(
        self, shell: RemoteShell, transport: FakeTransport, keystore: KeyStore, descriptor: ConnectionDescriptor
    ) -> None:
        await ensure_keys(shell, descriptor, keystore, shell.logger)

        cleanup = transport.scripts_containing("rm -f /home/pi/")
        assert len(cleanup) == 1
        assert transport.scripts[-1][0] == cleanup[0]
        assert transport.scripts[-1][1] is True

    async def test_temp_keys_removed_when_download_fails(
        self, transport: FakeTransport, keystore: KeyStore, descriptor: ConnectionDescriptor
    ) -> None:
        def broken_download(remote_path: str) -> bytes:
            raise OSError("sftp failed")

        transport.download = broken_download
        shell = RemoteShell(transport)

        with pytest.raises(ConnectionError):
            await ensure_keys(shell, descriptor, keystore, shell.logger)

        assert len(transport.scripts_containing("rm -f /home/pi/")) == 1
        assert descriptor.private_key_path is None

    async def test_keygen_failure_raises(
        self, shell: RemoteShell, transport: FakeTransport, keystore: KeyStore, descriptor: ConnectionDescriptor
    ) -> None:
        transport.on("ssh-keygen", CommandResult(exit_code=1, stderr="no entropy"))

        with pytest.raises(RemoteCommandError):
            await ensure_keys(shell, descriptor, keystore, shell.logger)

        assert transport.downloads == []
        assert len(transport.scripts_containing("rm -f /home/pi/")) == 1

    async def test_cleanup_failure_keeps_original_error(
        self, shell: RemoteShell, transport: FakeTransport, keystore: KeyStore, descriptor: ConnectionDescriptor
    ) -> None:
        transport.on("ssh-keygen", CommandResult(exit_code=1, stderr="no entropy"))
        run = shell.run

        async def run_dropping_cleanup(command, elevated=False):
            if "rm -f" in str(command):
                raise ConnectionError("raspberrypi", "socket closed")
            return await run(command, elevated=elevated)

        shell.run = run_dropping_cleanup

        with pytest.raises(RemoteCommandError):
            await ensure_keys(shell, descriptor, keystore, shell.logger)


class TestAuthorize:
    async def test_root_home(self, shell: RemoteShell, transport: FakeTransport) -> None:
        await authorize_public_key(shell, "root", "ssh-rsa AAAA me@box")

        assert "/root/.ssh/authorized_keys" in transport.scripts[0][0]

    async def test_reauthorize_uses_existing_public_key(
        self, shell: RemoteShell, transport: FakeTransport, key_descriptor: ConnectionDescriptor
    ) -> None:
        await reauthorize_existing_key(shell, key_descriptor, shell.logger)

        assert transport.scripts_containing("ssh-keygen") == []
        assert len(transport.scripts_containing("ssh-rsa AAAAEXISTING tester@workstation")) == 1


class TestReadPublicKey:
    def test_falls_back_to_private_key_pub(self, key_descriptor: ConnectionDescriptor) -> None:
        key_descriptor.public_key_path = None

        assert read_public_key(key_descriptor).startswith("ssh-rsa AAAAEXISTING")

    def test_missing(self, tmp_path: Path) -> None:
        descriptor = ConnectionDescriptor(host="pi.local", public_key_path=str(tmp_path / "none.pub"))

        with pytest.raises(KeyReadError):
            read_public_key(descriptor)

    def test_not_configured(self) -> None:
        with pytest.raises(KeyReadError):
            read_public_key(ConnectionDescriptor(host="pi.local"))


class TestKeyStore:
    def test_paths_are_sanitized(self, keystore: KeyStore) -> None:
        private, public = keystore.paths("pi@10.0.0.7 lab")

        assert private.name == "pi@10.0.0.7_lab"
        assert public.name == "pi@10.0.0.7_lab.pub"

    def test_delete(self, keystore: KeyStore) -> None:
        private, public = keystore.save("lab", b"private", b"public")

        keystore.delete("lab")

        assert not private.exists()
        assert not public.exists()
