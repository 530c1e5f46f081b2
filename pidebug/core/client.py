from __future__ import annotations

import io
import shlex
import socket
import time
from typing import List, Optional

import paramiko

from .constants import DEFAULT_SSH_PORT, DEFAULT_SSH_TIMEOUT
from .exceptions import AuthenticationError, ConnectionError, DnsResolutionError, KeyReadError
from .interfaces import CommandResult, Transport

RECV_CHUNK_SIZE = 32768
RECV_POLL_INTERVAL = 0.01


class RemoteClient(Transport):
    """
    Paramiko SSHClient wrapper implementing the Transport interface:
    - keeps host / user / port explicitly (paramiko no longer stores them)
    - password or in-memory private key authentication
    - RSA / Ed25519 / ECDSA private keys loaded from key text
    - exec helpers with exit codes, sudo execution, SFTP upload/download
    - context manager support
    """

    def __init__(
        self,
        host: str,
        user: str,
        port: int = DEFAULT_SSH_PORT,
        password: Optional[str] = None,
        private_key: Optional[str] = None,
        timeout: float = DEFAULT_SSH_TIMEOUT,
        address: Optional[str] = None,
    ) -> None:
        self.host = host
        self.username = user
        self.port = port
        self.address = address or host
        self.timeout = timeout
        self._password = password
        self._private_key = private_key

        self.client = paramiko.SSHClient()
        self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        self._sftp: Optional[paramiko.SFTPClient] = None

    @classmethod
    def open(
        cls,
        host: str,
        address: str,
        port: int,
        credentials,
        timeout: float = DEFAULT_SSH_TIMEOUT,
    ) -> RemoteClient:
        """Create a client from resolved credentials and connect it"""
        client = cls(
            host=host,
            user=credentials.username,
            port=port,
            password=credentials.password,
            private_key=credentials.private_key,
            timeout=timeout,
            address=address,
        )
        client.connect()
        return client

    # --------------------
    # Connection management
    # --------------------
    def connect(self) -> None:
        kwargs = dict(
            hostname=self.address,
            port=self.port,
            username=self.username,
            timeout=self.timeout,
            allow_agent=False,
            look_for_keys=False,
        )
        if self._private_key:
            kwargs["pkey"] = self._load_private_key(self._private_key)
        else:
            kwargs["password"] = self._password

        try:
            self.client.connect(**kwargs)
        except paramiko.AuthenticationException as e:
            raise AuthenticationError(self.host, e) from e
        except socket.gaierror as e:
            raise DnsResolutionError(self.host) from e
        except (paramiko.SSHException, OSError) as e:
            raise ConnectionError(self.host, e) from e

    # --------------------
    # Load private key
    # --------------------
    def _load_private_key(self, key_text: str) -> paramiko.PKey:
        """Try the key types ssh-keygen can produce"""
        for key_class in (paramiko.RSAKey, paramiko.Ed25519Key, paramiko.ECDSAKey):
            try:
                return key_class.from_private_key(io.StringIO(key_text))
            except paramiko.SSHException:
                continue
        raise KeyReadError(f"{self.username}@{self.host}", "unsupported private key format")

    # --------------------
    # Helpers
    # --------------------
    def exec_with_code(self, cmd: str) -> CommandResult:
        """
        Run a command and collect (stdout, stderr, exit_code).

        Both streams are drained while the command runs.
        """
        try:
            _, stdout, _ = self.client.exec_command(cmd)
            channel = stdout.channel
            out_buf, err_buf = [], []

            while not channel.exit_status_ready():
                has_output = self._drain(channel, out_buf, err_buf)
                if not has_output:
                    time.sleep(RECV_POLL_INTERVAL)

            while self._drain(channel, out_buf, err_buf):
                pass
            exit_code = channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as e:
            raise ConnectionError(self.host, e) from e

        return CommandResult(
            exit_code=exit_code,
            stdout=b"".join(out_buf).decode("utf-8", errors="replace"),
            stderr=b"".join(err_buf).decode("utf-8", errors="replace"),
        )

    @staticmethod
    def _drain(channel: paramiko.Channel, out_buf: List[bytes], err_buf: List[bytes]) -> bool:
        """Read whatever is buffered on either stream; True when anything was read"""
        has_output = False
        if channel.recv_ready():
            data = channel.recv(RECV_CHUNK_SIZE)
            if data:
                out_buf.append(data)
                has_output = True
        if channel.recv_stderr_ready():
            data = channel.recv_stderr(RECV_CHUNK_SIZE)
            if data:
                err_buf.append(data)
                has_output = True
        return has_output

    def run(self, command: str) -> CommandResult:
        return self.exec_with_code(command)

    def run_elevated(self, command: str) -> CommandResult:
        return self.exec_with_code(f"sudo -n sh -c {shlex.quote(command)}")

    def open_sftp(self) -> paramiko.SFTPClient:
        """Return an SFTP client, reusing the open channel"""
        if self._sftp is None or self._sftp.get_channel() is None:
            self._sftp = self.client.open_sftp()
        return self._sftp

    def upload(self, remote_path: str, data: bytes, mode: int = 0o644) -> None:
        try:
            sftp = self.open_sftp()
            with sftp.open(remote_path, "wb") as f:
                f.write(data)
            sftp.chmod(remote_path, mode)
        except (paramiko.SSHException, OSError) as e:
            raise ConnectionError(self.host, f"upload of {remote_path} failed: {e}") from e

    def download(self, remote_path: str) -> bytes:
        try:
            sftp = self.open_sftp()
            with sftp.open(remote_path, "rb") as f:
                return f.read()
        except (paramiko.SSHException, OSError) as e:
            raise ConnectionError(self.host, f"download of {remote_path} failed: {e}") from e

    def close(self) -> None:
        if self._sftp:
            try:
                self._sftp.close()
            except (paramiko.SSHException, OSError):
                pass
            self._sftp = None
        self.client.close()

    # --------------------
    # Context manager
    # --------------------
    def __enter__(self) -> RemoteClient:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
