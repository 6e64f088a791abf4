"""Development server launcher.

Starts the generated project's dev server in the background, waits until
it answers HTTP requests (bounded by ``ready_timeout``) and optionally
opens a browser on it.  The server belongs to the generated project;
automater only keeps a handle so the CLI can stay attached to it.
"""

from __future__ import annotations

import asyncio
import webbrowser
from dataclasses import dataclass
from pathlib import Path

from automater.config import AutomaterConfig
from automater.errors import BrowserOpenError, StepResult
from automater.utils import (
    format_command,
    print_detail,
    print_step,
    print_success,
    print_warning,
    resolve_executable,
    wait_for_health,
)


@dataclass
class DevServerHandle:
    """A running dev server child process."""

    process: asyncio.subprocess.Process
    url: str
    ready: bool = False

    @property
    def running(self) -> bool:
        return self.process.returncode is None

    async def wait(self) -> int:
        """Block until the dev server exits; returns its exit code."""
        return await self.process.wait()

    async def stop(self, grace: float = 5.0) -> None:
        """Terminate the server, killing it if it ignores the request."""
        if not self.running:
            return
        self.process.terminate()
        try:
            await asyncio.wait_for(self.process.wait(), timeout=grace)
        except asyncio.TimeoutError:
            self.process.kill()
            await self.process.wait()


async def open_browser(url: str) -> None:
    """Open *url* in the user's default browser.

    Raises:
        BrowserOpenError: If no browser could be launched.
    """
    try:
        opened = await asyncio.to_thread(webbrowser.open, url)
    except webbrowser.Error as exc:
        raise BrowserOpenError(url, str(exc)) from exc
    if not opened:
        raise BrowserOpenError(url, "no runnable browser found")


class DevServerLauncher:
    """Starts ``<package manager> dev`` in a generated project."""

    def __init__(self, config: AutomaterConfig) -> None:
        self.config = config

    async def launch(
        self,
        project_dir: str | Path,
        open_in_browser: bool = False,
        result: StepResult | None = None,
    ) -> DevServerHandle:
        """Spawn the dev server and wait for it to become reachable.

        Never waits for the server to exit.  Not becoming ready in time and
        failing to open a browser are warnings recorded on *result*.

        Raises:
            OSError: If the dev command cannot be started.
        """
        result = result if result is not None else StepResult(step="start")
        cmd = self.config.dev_command
        url = self.config.dev_server_url

        print_step(f"Starting development server at {url}")
        print_detail(f"Running: {format_command(cmd)}")
        process = await asyncio.create_subprocess_exec(
            *resolve_executable(cmd),
            cwd=str(project_dir),
        )
        handle = DevServerHandle(process=process, url=url)

        handle.ready = await self._wait_until_ready(handle)
        if handle.ready:
            print_success(f"Development server ready at {url}")
        elif not handle.running:
            message = f"Development server exited with code {process.returncode}"
            result.warn(message)
            print_warning(message)
            return handle
        else:
            message = (
                f"Development server did not answer within "
                f"{self.config.ready_timeout:g}s; it may still be compiling"
            )
            result.warn(message)
            print_warning(message)

        if open_in_browser:
            try:
                await open_browser(url)
            except BrowserOpenError as exc:
                result.warn(str(exc))
                print_warning(str(exc))

        return handle

    async def _wait_until_ready(self, handle: DevServerHandle) -> bool:
        """Probe the server until it answers, gives up, or the process dies."""
        probe = asyncio.ensure_future(
            wait_for_health(
                handle.url,
                timeout=self.config.ready_timeout,
                interval=self.config.ready_interval,
                any_response=True,
            )
        )
        exited = asyncio.ensure_future(handle.process.wait())
        done, _ = await asyncio.wait({probe, exited}, return_when=asyncio.FIRST_COMPLETED)
        if probe in done:
            exited.cancel()
            return probe.result()
        probe.cancel()
        return False
