"""
Listening-socket readiness poll

Used after launching a web application on the device to find out when
its port is open. Not being ready is an expected outcome, reported in
the result rather than raised.
"""
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from ..core.constants import LISTEN_POLL_INTERVAL, LISTEN_POLL_TIMEOUT, LISTEN_SETTLE_DELAY
from ..core.exceptions import PiDebugError
from .shell.executor import RemoteShell
from .shell.models import RetryPolicy
from .shell.script import ScriptTemplate, quoted


class WebServer(str, Enum):
    """How the application listens"""
    KESTREL = "kestrel"
    REVERSE_PROXY = "reverse-proxy"

    def lsof_pattern(self, port: int) -> str:
        if self == WebServer.REVERSE_PROXY:
            return f"TCP 127.0.0.1:{port}"
        return f"TCP *:{port} (LISTEN)"


LISTEN_CHECK_SCRIPT = ScriptTemplate(
    "lsof -i -P -n | grep --quiet --fixed-strings {{pattern}}"
)


@dataclass
class ReadinessResult:
    """
    Attributes:
        ready: Port was seen listening
        server: Server kind that was polled for
        polls: Number of polls issued
        cancelled: Caller stopped the poll
    """
    ready: bool
    server: WebServer
    polls: int = 0
    cancelled: bool = False


def render_listen_check(port: int, server: WebServer = WebServer.KESTREL) -> str:
    if not 0 < int(port) < 65536:
        raise ValueError(f"invalid port: {port}")
    return LISTEN_CHECK_SCRIPT.render(pattern=quoted(server.lsof_pattern(int(port))))


async def wait_for_listening(
    shell: RemoteShell,
    port: int,
    server: WebServer = WebServer.KESTREL,
    interval: float = LISTEN_POLL_INTERVAL,
    timeout: float = LISTEN_POLL_TIMEOUT,
    settle_delay: float = LISTEN_SETTLE_DELAY,
    cancel: Optional[Callable[[], bool]] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    policy: Optional[RetryPolicy] = None,
    clock: Optional[Callable[[], float]] = None,
) -> ReadinessResult:
    """
    Poll until a port is listening on the device or the timeout expires.

    Each poll is one elevated ``lsof`` check (more with ``policy``). A
    failed check, including a dropped connection, counts as "not yet".
    ``cancel`` is checked between polls; a command already sent is
    always waited for.

    Args:
        shell: Executor for the live session
        port: TCP port
        server: Kestrel (any address) or reverse proxy (loopback)
        interval: Seconds between polls
        timeout: Overall time limit in seconds
        settle_delay: Pause after the port appears, letting the app finish starting
        cancel: Returns True to stop polling
        sleep: Awaitable sleep
        policy: Retry policy for each poll
        clock: Monotonic clock, the event loop's by default

    Returns:
        ReadinessResult
    """
    command = render_listen_check(port, server)
    policy = policy or RetryPolicy(attempts=1)
    clock = clock or asyncio.get_running_loop().time

    started = clock()
    slept = 0.0
    polls = 0
    while True:
        if cancel is not None and cancel():
            shell.logger.info("Stopped waiting for port %s", port)
            return ReadinessResult(ready=False, server=server, polls=polls, cancelled=True)

        polls += 1
        try:
            response = await shell.run_with_retry(command, elevated=True, policy=policy)
        except PiDebugError as e:
            shell.logger.debug("Port check failed: %s", e)
        else:
            if response.success:
                shell.logger.info("Port %s is listening", port)
                if settle_delay > 0:
                    await sleep(settle_delay)
                return ReadinessResult(ready=True, server=server, polls=polls)

        # elapsed counts injected sleeps too, so a no-op sleep still ends the loop
        elapsed = max(clock() - started, slept)
        remaining = timeout - elapsed
        if remaining <= 0:
            break
        pause = min(interval, remaining)
        await sleep(pause)
        slept += pause

    shell.logger.warning("Port %s is not listening after %.0f seconds", port, timeout)
    return ReadinessResult(ready=False, server=server, polls=polls)
