"""
Remote shell execution

Runs inline commands and script bundles on the device, optionally
through sudo. Blocking transport calls are pushed to a worker thread;
an ``asyncio.Lock`` keeps one session from running two commands at once.
"""
import asyncio
import uuid
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from ...core.constants import REMOTE_TEMP_FOLDER
from ...core.exceptions import ConnectionError, PiDebugError, RemoteCommandError
from ...core.interfaces import CommandResult, Transport
from ...core.logging import get_host_logger
from .models import RetryPolicy, ScriptBundle
from .script import validate_identifier

Command = Union[str, ScriptBundle]
T = TypeVar("T")


class RemoteShell:
    """Command executor bound to one transport"""

    def __init__(
        self,
        transport: Transport,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        name: Optional[str] = None,
    ):
        self.transport = transport
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self.logger = get_host_logger(__name__, name or transport.host)

    @property
    def hostname(self) -> str:
        return self.transport.host

    # ============================================================
    # Execution
    # ============================================================

    async def run(self, command: Command, elevated: bool = False) -> CommandResult:
        """
        Run an inline command or a script bundle.

        Multi-line strings are treated as scripts and uploaded as a
        temporary file before execution.

        Args:
            command: Single command line, multi-line script or ScriptBundle
            elevated: Run through sudo

        Returns:
            CommandResult
        """
        if isinstance(command, str) and "\n" in command.strip():
            command = ScriptBundle(script=command)

        async with self._lock:
            if isinstance(command, ScriptBundle):
                return await self._call(self._run_bundle, command, elevated)
            runner = self.transport.run_elevated if elevated else self.transport.run
            return await self._call(runner, command)

    async def run_checked(self, command: Command, elevated: bool = False) -> CommandResult:
        """
        Run a command and fail on a nonzero exit code.

        Raises:
            RemoteCommandError: Command exited nonzero
        """
        result = await self.run(command, elevated=elevated)
        if not result.success:
            raise RemoteCommandError(self.hostname, result.stderr or result.all_text, result.exit_code)
        return result

    async def run_with_retry(
        self,
        command: Command,
        elevated: bool = False,
        policy: Optional[RetryPolicy] = None,
    ) -> CommandResult:
        """
        Run a command, retrying while it exits nonzero.

        Used for checks that race with state changing asynchronously on
        the device. The last result is returned either way.
        """
        policy = policy or RetryPolicy()
        result = CommandResult(exit_code=-1)
        for attempt in range(1, policy.attempts + 1):
            result = await self.run(command, elevated=elevated)
            if result.success:
                return result
            self.logger.debug("attempt %d/%d exited %d", attempt, policy.attempts, result.exit_code)
            if attempt < policy.attempts:
                await self._sleep(policy.backoff)
        return result

    async def upload(self, remote_path: str, data: bytes, mode: int = 0o644) -> None:
        async with self._lock:
            await self._call(self.transport.upload, remote_path, data, mode)

    async def download(self, remote_path: str) -> bytes:
        async with self._lock:
            return await self._call(self.transport.download, remote_path)

    async def _call(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking transport call in a worker thread"""
        try:
            return await asyncio.to_thread(func, *args)
        except OSError as e:
            raise ConnectionError(self.hostname, e) from e

    # ============================================================
    # Script bundles
    # ============================================================

    def _run_bundle(self, bundle: ScriptBundle, elevated: bool) -> CommandResult:
        folder = f"{REMOTE_TEMP_FOLDER}/pidebug-{uuid.uuid4().hex}"
        for name in bundle.files:
            validate_identifier("attachment", name)

        created = self.transport.run(f"mkdir -m 700 {folder}")
        if not created.success:
            return created

        try:
            self.transport.upload(f"{folder}/script.sh", bundle.script.encode("utf-8"), mode=0o700)
            for name, data in bundle.files.items():
                self.transport.upload(f"{folder}/{name}", data)

            command = f"cd {folder} && sh ./script.sh"
            if elevated:
                return self.transport.run_elevated(command)
            return self.transport.run(command)
        finally:
            self._remove_folder(folder, elevated)

    def _remove_folder(self, folder: str, elevated: bool) -> None:
        cleanup = f"rm -rf {folder}"
        try:
            result = self.transport.run_elevated(cleanup) if elevated else self.transport.run(cleanup)
        except (PiDebugError, OSError) as e:
            self.logger.warning("cannot remove %s: %s", folder, e)
            return
        if not result.success:
            self.logger.warning("cannot remove %s: %s", folder, result.all_text)
