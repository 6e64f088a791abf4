"""Shared utility functions for automater.

Provides async command execution, JSON I/O, Rich-based console output,
port probing, and readiness polling.  Every step of the scaffolding
pipeline talks to the outside world through these helpers, which keeps
the feature applicators free of subprocess and printing boiler-plate.
"""

from __future__ import annotations

import asyncio
import json
import shutil
import socket
from pathlib import Path
from typing import Any

import httpx
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


def resolve_executable(cmd: list[str]) -> list[str]:
    """Return *cmd* with its program resolved against ``PATH``.

    On Windows ``npm``/``npx`` are ``.cmd`` shims which
    ``create_subprocess_exec`` cannot start by bare name.  If the program
    cannot be found the vector is returned untouched so the spawn error
    surfaces from the OS.
    """
    if not cmd:
        return cmd
    resolved = shutil.which(cmd[0])
    if resolved is None:
        return list(cmd)
    return [resolved, *cmd[1:]]


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: float | None = None,
) -> int:
    """Run a command asynchronously and wait for it to exit.

    The child inherits the parent's streams so the user sees installer and
    generator output live.

    Args:
        cmd: Argument vector; the first element is the program.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
            ``None`` waits forever.

    Returns:
        The exit code, or ``-1`` if the command was killed on timeout.

    Raises:
        OSError: If the program cannot be spawned (e.g. not installed).
    """
    process = await asyncio.create_subprocess_exec(
        *resolve_executable(cmd),
        cwd=str(cwd) if cwd else None,
    )

    try:
        await asyncio.wait_for(process.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        print_warning(f"Command timed out after {timeout}s: {format_command(cmd)}")
        return -1

    return process.returncode or 0


def format_command(cmd: list[str]) -> str:
    """Render an argument vector for display."""
    return " ".join(cmd)


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        return {"_root": data}
    return data


async def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> None:
    """Save data as pretty-printed JSON with a trailing newline.

    Parent directories are created automatically.  The write runs in a
    worker thread so the event loop is never blocked on disk I/O.
    """
    file_path = Path(path)
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    def _write() -> None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")

    await asyncio.to_thread(_write)


def is_empty_dir(path: Path) -> bool:
    """Return ``True`` if *path* is missing or an empty directory."""
    if not path.exists():
        return True
    return path.is_dir() and not any(path.iterdir())


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_banner(title: str, lines: dict[str, str]) -> None:
    """Print a boxed banner with aligned ``label : value`` lines."""
    width = max((len(k) for k in lines), default=0)
    body = "\n".join(f"{escape(k.ljust(width))} : {escape(str(v))}" for k, v in lines.items())
    console.print(
        Panel(
            body,
            title=f"[bold]{escape(title)}[/bold]",
            border_style="bright_cyan",
        )
    )


def print_step(message: str) -> None:
    """Print a blue progress line announcing a pipeline step."""
    console.print(f"[bold blue]>[/bold blue] {escape(message)}")


def print_detail(message: str) -> None:
    """Print a dimmed detail line (commands being run, paths written)."""
    console.print(f"  [dim]{escape(message)}[/dim]")


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]+ {escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]x {escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]! {escape(message)}[/bold yellow]")


def print_summary_table(
    rows: list[tuple[str, ...]],
    columns: tuple[str, ...],
    title: str = "Summary",
) -> None:
    """Print a table with the given column headers and rows."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    for index, column in enumerate(columns):
        if index == 0:
            table.add_column(column, style="bold", no_wrap=True)
        else:
            table.add_column(column)

    for row in rows:
        table.add_row(*(str(cell) for cell in row))

    console.print(table)
    console.print()


# ---------------------------------------------------------------------------
# Port and readiness helpers
# ---------------------------------------------------------------------------


async def check_port_available(port: int, host: str = "127.0.0.1") -> bool:
    """Check whether a TCP port is free on *host*.

    Attempts a ``connect``; a refused connection means nothing is listening.
    """
    loop = asyncio.get_running_loop()

    def _probe() -> bool:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(1)
        try:
            # connect_ex returns 0 when something accepted the connection
            return sock.connect_ex((host, port)) != 0
        finally:
            sock.close()

    return await loop.run_in_executor(None, _probe)


async def wait_for_health(
    url: str,
    timeout: float = 60,
    interval: float = 1,
    *,
    any_response: bool = False,
) -> bool:
    """Poll *url* until it answers or *timeout* elapses.

    Args:
        url: Fully-qualified URL (e.g. ``http://localhost:3000``).
        timeout: Maximum seconds to wait.
        interval: Seconds between probes.
        any_response: Treat any status below 500 as ready instead of
            requiring HTTP 200.  A dev server that answers 404 on ``/`` is
            still up.

    Returns:
        ``True`` if the server answered within the timeout window.
    """
    import time

    deadline = time.monotonic() + timeout

    async with httpx.AsyncClient(timeout=httpx.Timeout(10.0, connect=3.0)) as client:
        while time.monotonic() < deadline:
            try:
                response = await client.get(url)
                if response.status_code == 200:
                    return True
                if any_response and response.status_code < 500:
                    return True
            except httpx.HTTPError:
                pass

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await asyncio.sleep(min(interval, remaining))

    return False
